"""
Variant XO Platform - Game Manager

ターン進行を管理するステートマシンを提供します。

状態遷移:
    AWAIT_MOVE → VALIDATE → APPLY → CHECK_TERMINAL → SWITCH_TURN → AWAIT_MOVE ...

- 検証と適用は Board.update_board() に一括で委譲する
- 不正な手は同じプレイヤーの AWAIT_MOVE に戻る
- 終了判定で True になったら勝者（または引き分け）を返してループを抜ける

GameManager 自身はゲーム状態を持たず、盤面とプレイヤーの仲介のみを行います。
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional, Sequence
import logging
import random

from game_core import Board, BoardRegistry, Move, Player, PlayerKind
from players import DEFAULT_ENTRANTS, Entrant, GameUI, HumanMoveReader

# インポート時に全バリアントがBoardRegistryへ登録される
import grid_boards  # noqa: F401
import tictactoe_boards  # noqa: F401


logger = logging.getLogger(__name__)


class TurnPhase(Enum):
    """ターン内の状態"""
    AWAIT_MOVE = auto()
    VALIDATE = auto()
    APPLY = auto()
    CHECK_TERMINAL = auto()
    SWITCH_TURN = auto()


class MatchOutcome(Enum):
    """対局結果の種類"""
    WIN = auto()
    DRAW = auto()


@dataclass
class GameEvent:
    """
    ゲームイベントを表すデータクラス

    event_type: "TURN_START", "MOVE_REJECTED", "MOVE_APPLIED", "GAME_OVER"
    """
    event_type: str
    player: Optional[Player] = None
    move: Optional[Move] = None
    outcome: Optional[MatchOutcome] = None
    message: str = ""


GameEventCallback = Callable[[GameEvent], None]


@dataclass
class MatchResult:
    """1対局の結果"""
    outcome: MatchOutcome
    winner: Optional[Player]
    moves: int                # 盤面の手数（move_count）
    rejected_moves: int = 0   # 拒否された手の数

    @property
    def is_draw(self) -> bool:
        return self.outcome == MatchOutcome.DRAW


@dataclass
class MatchConfig:
    """対局の設定"""
    variant_id: str = "classic"
    seed: Optional[int] = None          # 対局ごとの乱数シード（Noneなら非再現）
    entrants: Sequence[Entrant] = DEFAULT_ENTRANTS
    board_options: dict[str, Any] = field(default_factory=dict)  # 盤面コンストラクタへの追加引数


class GameManager:
    """
    ターン進行を管理するコントローラ

    使用例:
        board = ClassicBoard()
        ui = GameUI(rng=random.Random(0))
        players = ui.setup_players(board)
        result = GameManager(board, players, ui).run()
    """

    def __init__(
        self,
        board: Board,
        players: Sequence[Player],
        ui: GameUI
    ) -> None:
        """
        Args:
            board: 対局に使う盤面
            players: 手番順のプレイヤー2人
            ui: 手を取得するUIアダプタ

        Raises:
            ValueError: プレイヤーが2人でない場合
        """
        if len(players) != 2:
            raise ValueError(f"GameManager requires exactly two players, got {len(players)}")

        self._board = board
        self._players = tuple(players)
        self._ui = ui
        self._active = 0
        self._phase = TurnPhase.AWAIT_MOVE
        self._result: Optional[MatchResult] = None
        self._rejected_moves = 0
        self._is_running = False
        self._listeners: list[GameEventCallback] = []

    @property
    def board(self) -> Board:
        return self._board

    @property
    def players(self) -> tuple[Player, ...]:
        return self._players

    @property
    def phase(self) -> TurnPhase:
        """現在のターン状態"""
        return self._phase

    @property
    def active_player(self) -> Player:
        """手番のプレイヤー"""
        return self._players[self._active]

    @property
    def result(self) -> Optional[MatchResult]:
        """対局結果（終了前はNone）"""
        return self._result

    def add_listener(self, callback: GameEventCallback) -> None:
        """イベントリスナーを登録"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: GameEventCallback) -> bool:
        """
        イベントリスナーを解除

        Returns:
            解除できたらTrue、存在しなければFalse
        """
        if callback in self._listeners:
            self._listeners.remove(callback)
            return True
        return False

    def _notify_listeners(self, event: GameEvent) -> None:
        """全リスナーにイベントを通知"""
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                # リスナーの例外で対局を止めない
                logger.warning("Listener error on %s", event.event_type, exc_info=True)

    def _opponent_of(self, index: int) -> Player:
        return self._players[1 - index]

    def run(self) -> MatchResult:
        """
        対局を最後まで同期的に実行

        Returns:
            対局結果

        Raises:
            RuntimeError: 既に実行中、または終了済みの場合
        """
        if self._is_running or self._result is not None:
            raise RuntimeError("Match has already been played")

        self._is_running = True
        logger.info(
            "Match started: %s (%s vs %s)",
            self._board.variant_name or type(self._board).__name__,
            self._players[0].name,
            self._players[1].name,
        )

        try:
            while self._result is None:
                self._play_turn()
        finally:
            self._is_running = False

        logger.info(
            "Match finished: %s%s after %d moves",
            self._result.outcome.name,
            f" ({self._result.winner.name})" if self._result.winner else "",
            self._result.moves,
        )
        return self._result

    def _play_turn(self) -> None:
        """1手分の状態遷移（不正な手なら AWAIT_MOVE で止まる）"""
        player = self.active_player

        self._phase = TurnPhase.AWAIT_MOVE
        self._notify_listeners(GameEvent(event_type="TURN_START", player=player))
        move = self._ui.get_move(player)

        # 検証と適用は盤面側で不可分に行う
        self._phase = TurnPhase.VALIDATE
        if not self._board.update_board(move):
            self._rejected_moves += 1
            self._notify_listeners(GameEvent(
                event_type="MOVE_REJECTED",
                player=player,
                move=move,
                message=f"{player.name} made an illegal move",
            ))
            self._phase = TurnPhase.AWAIT_MOVE
            return

        self._phase = TurnPhase.APPLY
        self._notify_listeners(GameEvent(event_type="MOVE_APPLIED", player=player, move=move))

        self._phase = TurnPhase.CHECK_TERMINAL
        if self._board.game_is_over(player):
            self._result = self._decide_result(self._active)
            self._notify_listeners(GameEvent(
                event_type="GAME_OVER",
                player=self._result.winner,
                move=move,
                outcome=self._result.outcome,
                message=(
                    f"{self._result.winner.name} wins"
                    if self._result.winner else "Draw"
                ),
            ))
            return

        self._phase = TurnPhase.SWITCH_TURN
        self._active = 1 - self._active

    def _decide_result(self, mover_index: int) -> MatchResult:
        """終了した盤面から勝者を決定"""
        mover = self._players[mover_index]
        opponent = self._opponent_of(mover_index)

        winner: Optional[Player] = None
        if self._board.is_win(mover):
            winner = mover
        elif self._board.is_lose(mover) or self._board.is_win(opponent):
            winner = opponent

        return MatchResult(
            outcome=MatchOutcome.WIN if winner else MatchOutcome.DRAW,
            winner=winner,
            moves=self._board.move_count,
            rejected_moves=self._rejected_moves,
        )


def create_match(
    config: MatchConfig,
    human_input: Optional[HumanMoveReader] = None
) -> GameManager:
    """
    設定から対局（盤面・UI・プレイヤー・GameManager）を組み立てる

    乱数源は対局ごとに1つ生成し、盤面（障害物など）とUI（自動プレイヤー）で共有します。

    Raises:
        KeyError: variant_idが登録されていない場合
    """
    rng = random.Random(config.seed)
    board = BoardRegistry.create(config.variant_id, rng=rng, **config.board_options)
    ui = GameUI(rng=rng, human_input=human_input)
    players = ui.setup_players(board, config.entrants)
    return GameManager(board, players, ui)


def is_all_automated(config: MatchConfig) -> bool:
    """全プレイヤーが自動プレイヤーか"""
    return all(kind == PlayerKind.AUTOMATED for _, kind in config.entrants)
