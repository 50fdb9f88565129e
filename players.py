"""
Variant XO Platform - Player Module

プレイヤーの生成と手の取得を担うUIアダプタを提供します。

設計原則:
- Player は不変の値オブジェクト（game_core.Player）
- 人間の入力は外部から注入される HumanMoveReader 経由で取得する
  （メニュー表示やトークン読み取りはこのモジュールの責務外）
- 自動プレイヤーは盤面の範囲内で一様ランダムに手を生成する
  （占有状態の事前チェックはしない。合法性はBoardの責務）

クラス構成:
- GameUI: create_player / setup_players / get_move の契約
- ScriptedMoveReader: あらかじめ用意した手を順に返す入力源
"""

from typing import Callable, Iterable, Optional, Sequence
import logging
import random

from game_core import Board, Move, Player, PlayerKind


logger = logging.getLogger(__name__)

# 人間の手を取得するコールバック型（外部入力でブロックしてよい）
HumanMoveReader = Callable[[Player], Move]

# (名前, 種類) の組
Entrant = tuple[str, PlayerKind]

DEFAULT_ENTRANTS: tuple[Entrant, Entrant] = (
    ("Player 1", PlayerKind.AUTOMATED),
    ("Player 2", PlayerKind.AUTOMATED),
)


class GameUI:
    """
    GameManager が利用するUIアダプタ

    使用例:
        ui = GameUI(rng=random.Random(42), human_input=read_from_console)
        players = ui.setup_players(board, [("You", PlayerKind.HUMAN),
                                           ("CPU", PlayerKind.AUTOMATED)])
        move = ui.get_move(players[0])
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        human_input: Optional[HumanMoveReader] = None
    ) -> None:
        """
        Args:
            rng: 自動プレイヤーの手の生成に使う乱数源（対局ごとに注入）
            human_input: 人間プレイヤーの手を返すコールバック
        """
        self._rng = rng or random.Random()
        self._human_input = human_input

    def create_player(
        self,
        name: str,
        symbol: str,
        kind: PlayerKind,
        board: Optional[Board] = None
    ) -> Player:
        """プレイヤーを生成（副作用なし）"""
        return Player(name=name, symbol=symbol, kind=kind, board=board)

    def setup_players(
        self,
        board: Board,
        entrants: Optional[Sequence[Entrant]] = None
    ) -> tuple[Player, Player]:
        """
        対局用の2人のプレイヤーを生成

        シンボルは盤面のルールが決めた手番順のもの（例: SUSなら S / U）を使います。

        Args:
            board: 対局に使う盤面
            entrants: (名前, 種類) を手番順に2つ（省略時は自動プレイヤー2人）

        Returns:
            手番順のプレイヤー2人

        Raises:
            ValueError: entrantsが2つでない場合
        """
        entrants = list(DEFAULT_ENTRANTS if entrants is None else entrants)
        if len(entrants) != 2:
            raise ValueError(f"Exactly two entrants are required, got {len(entrants)}")

        first, second = (
            self.create_player(name, symbol, kind, board)
            for (name, kind), symbol in zip(entrants, board.player_symbols)
        )
        return first, second

    def get_move(self, player: Player) -> Move:
        """
        プレイヤーの次の手を取得

        Raises:
            RuntimeError: 人間プレイヤーなのに入力源が設定されていない場合
            ValueError: 自動プレイヤーに盤面が紐づいていない場合
        """
        if player.is_human:
            if self._human_input is None:
                raise RuntimeError(f"No human input configured for {player.name}")
            return self._human_input(player)

        if player.board is None:
            raise ValueError(f"Automated player {player.name} has no board")
        return player.board.sample_move(player.symbol, self._rng)


class ScriptedMoveReader:
    """
    あらかじめ用意した手を順番に返す入力源

    テストやリプレイで HumanMoveReader の代わりに使用します。
    """

    def __init__(self, moves: Iterable[Move]) -> None:
        self._moves = list(moves)
        self._index = 0

    @property
    def remaining(self) -> int:
        """まだ返していない手の数"""
        return len(self._moves) - self._index

    def __call__(self, player: Player) -> Move:
        if self._index >= len(self._moves):
            raise RuntimeError(f"Scripted moves exhausted for {player.name}")
        move = self._moves[self._index]
        self._index += 1
        logger.debug("scripted move for %s: %s", player.name, move)
        return move
