"""
Variant XO Platform - Core Game Logic

このモジュールは、複数の変則ルール（クラシック、ミゼール、数字、単語、
重力、スライド、障害物、メモリー、アルティメットなど）を
共通のターン進行ループで扱うためのコアロジックを提供します。

アーキテクチャ:
- Move / Player: 不変の値オブジェクト
- Board (ABC): 盤面状態と変則ルールを持つ抽象基底クラス（Strategyパターン）
- LineBoard: 「N個並べ」系ルールの共通実装
- BoardRegistry: variant_id から盤面クラスを生成するレジストリ
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Iterator, Optional
import copy
import logging
import random


logger = logging.getLogger(__name__)


# セル表現用のマーカー
BLANK = "."      # 空きマス
MASKED = " "     # 形状マスクで使用不可のマス（ダイヤモンド、ピラミッド）
OBSTACLE = "#"   # 障害物（障害物モード）
HIDDEN = "?"     # 公開盤面で伏せられたマス（メモリーモード）
DRAWN = "-"      # 勝者なしで埋まった小盤面（アルティメット）

MARKERS = frozenset({BLANK, MASKED, OBSTACLE, HIDDEN, DRAWN})

# Undo を表す予約シンボル
UNDO_SYMBOL = ""

# 直線判定で使う4つの軸（横、縦、右斜め下、左斜め下）
LINE_DIRECTIONS = ((0, 1), (1, 0), (1, 1), (1, -1))

Cell = tuple[int, int]
Line = tuple[Cell, ...]


class Direction(Enum):
    """スライド移動の方向"""
    L = (0, -1)
    R = (0, 1)
    U = (-1, 0)
    D = (1, 0)

    @property
    def delta(self) -> Cell:
        """(行の増分, 列の増分)"""
        return self.value


class PlayerKind(Enum):
    """プレイヤーの種類"""
    HUMAN = auto()
    AUTOMATED = auto()


class MoveRejection(Enum):
    """着手が拒否された理由"""
    OUT_OF_BOUNDS = auto()   # 盤面外
    CELL_OCCUPIED = auto()   # 既に埋まっている
    ILLEGAL_MOVE = auto()    # 変則ルール違反（パリティ、重力、マスクなど）


@dataclass(frozen=True)
class Move:
    """
    1手を表す不変データクラス

    Move自体は検証を行いません。合法性の判定はBoardの責務です。
    directionはスライド系ルールでのみ使用します。
    """
    row: int
    col: int
    symbol: str
    direction: Optional[Direction] = None

    @classmethod
    def undo(cls) -> "Move":
        """直前の手を取り消す Undo 手を作成"""
        return cls(0, 0, UNDO_SYMBOL)

    @property
    def is_undo(self) -> bool:
        """Undo 手かどうか"""
        return self.symbol == UNDO_SYMBOL


@dataclass(frozen=True)
class Player:
    """
    プレイヤー情報

    1対局につき1度だけ生成され、エンジンからは変更されません。
    boardは自動プレイヤーが手をサンプリングする範囲を知るために参照します。
    """
    name: str
    symbol: str
    kind: PlayerKind
    board: Optional["Board"] = None

    @property
    def is_human(self) -> bool:
        """人間プレイヤーかどうか"""
        return self.kind == PlayerKind.HUMAN


def iter_segments(rows: int, columns: int, length: int) -> Iterator[Line]:
    """
    盤面内に収まる長さlengthの直線（横・縦・斜め）を全て列挙

    Args:
        rows: 行数
        columns: 列数
        length: 直線の長さ

    Yields:
        セル座標のタプル（始点から順に並ぶ）
    """
    for d_row, d_col in LINE_DIRECTIONS:
        for row in range(rows):
            for col in range(columns):
                end_row = row + d_row * (length - 1)
                end_col = col + d_col * (length - 1)
                if 0 <= end_row < rows and 0 <= end_col < columns:
                    yield tuple(
                        (row + d_row * i, col + d_col * i) for i in range(length)
                    )


def segment_direction(line: Line) -> Cell:
    """直線の向き（最初の2セルの差分）"""
    (r0, c0), (r1, c1) = line[0], line[1]
    return (r1 - r0, c1 - c0)


class Board(ABC):
    """
    盤面の状態と変則ルールを保持する抽象基底クラス

    責務:
    - グリッドと手数カウンタ、変則ルール固有の補助状態の保持
    - 着手の合法性判定（check_move）と適用（update_board）
    - 勝敗・引き分けの判定（is_win / is_lose / is_draw / game_is_over）

    判定メソッドは純粋関数であり、状態を変更しません。
    補助状態の更新（得点ラインの記録など）は着手適用時にのみ行います。
    """

    variant_id: str = ""
    variant_name: str = ""
    # 手番順のプレイヤーシンボル（move_count % 2 番目が手番側）
    player_symbols: tuple[str, str] = ("X", "O")

    # Undoスナップショットに含めない属性（不変データや乱数源）
    _SNAPSHOT_EXCLUDE = frozenset({"_history", "_rng", "_lines", "_mask", "_words"})

    def __init__(
        self,
        rows: int,
        columns: int,
        rng: Optional[random.Random] = None
    ) -> None:
        """
        盤面を初期化します

        Args:
            rows: 行数
            columns: 列数
            rng: ルールが使用する乱数源（省略時は新規生成）
        """
        self._rows = rows
        self._columns = columns
        self._grid: list[list[str]] = [
            [BLANK for _ in range(columns)] for _ in range(rows)
        ]
        self._move_count = 0
        self._rng = rng or random.Random()
        self._history: list[dict] = []

    @property
    def rows(self) -> int:
        """行数"""
        return self._rows

    @property
    def columns(self) -> int:
        """列数"""
        return self._columns

    @property
    def move_count(self) -> int:
        """適用済み（取り消されていない）手数"""
        return self._move_count

    @property
    def grid(self) -> list[list[str]]:
        """公開盤面のコピー"""
        return [list(row) for row in self._grid]

    @property
    def symbol_to_move(self) -> str:
        """次に手番となるシンボル"""
        return self.player_symbols[self._move_count % 2]

    def opponent_symbol(self, symbol: str) -> str:
        """相手側のシンボル"""
        first, second = self.player_symbols
        return second if symbol == first else first

    def is_within_bounds(self, row: int, col: int) -> bool:
        """座標が盤面内かどうかを判定"""
        return 0 <= row < self._rows and 0 <= col < self._columns

    def is_playable(self, row: int, col: int) -> bool:
        """形状マスク上で使用可能なマスかどうか（既定では全マス）"""
        return self.is_within_bounds(row, col)

    def get_cell(self, row: int, col: int) -> str:
        """
        指定座標の公開セル値を取得

        Returns:
            セル値（範囲外の場合はMASKED）
        """
        if not self.is_within_bounds(row, col):
            return MASKED
        return self._grid[row][col]

    def is_empty(self, row: int, col: int) -> bool:
        """指定座標が空きマスかどうか"""
        return self.get_cell(row, col) == BLANK

    @property
    def playable_cell_count(self) -> int:
        """使用可能なマスの総数"""
        return sum(
            1
            for row in range(self._rows)
            for col in range(self._columns)
            if self.is_playable(row, col)
        )

    def is_full(self) -> bool:
        """使用可能なマスが全て埋まっているか"""
        return self._move_count >= self.playable_cell_count

    # === 着手 ===

    def check_move(self, move: Move) -> Optional[MoveRejection]:
        """
        着手の合法性を判定（状態は変更しない）

        判定順序: 盤面内 → マスク → 空きマス → シンボル → 変則ルール

        Args:
            move: 判定する手

        Returns:
            合法ならNone、不正なら拒否理由
        """
        if move.is_undo:
            return None if self.can_undo else MoveRejection.ILLEGAL_MOVE
        if not self.is_within_bounds(move.row, move.col):
            return MoveRejection.OUT_OF_BOUNDS
        if not self.is_playable(move.row, move.col):
            return MoveRejection.ILLEGAL_MOVE
        if not self.is_empty(move.row, move.col):
            return MoveRejection.CELL_OCCUPIED
        if not self._is_valid_symbol(move.symbol):
            return MoveRejection.ILLEGAL_MOVE
        return self._check_variant_rules(move)

    def _is_valid_symbol(self, symbol: str) -> bool:
        """置けるシンボルか（既定: 手番順のプレイヤーシンボルのみ）"""
        return symbol.upper() in self.player_symbols

    def _check_variant_rules(self, move: Move) -> Optional[MoveRejection]:
        """変則ルール固有の合法性判定（サブクラスでオーバーライド）"""
        return None

    def update_board(self, move: Move) -> bool:
        """
        着手を検証し、合法なら盤面に適用

        不正な手では盤面を一切変更せずFalseを返します。
        Undo手の場合は直前の手を取り消します。

        Args:
            move: 適用する手

        Returns:
            受理されたらTrue
        """
        rejection = self.check_move(move)
        if rejection is not None:
            logger.debug(
                "%s rejected %s: %s", self.variant_id, move, rejection.name
            )
            return False

        if move.is_undo:
            return self.undo()

        self._history.append(self._snapshot())
        self._apply_move(move)
        return True

    def _apply_move(self, move: Move) -> None:
        """
        合法な手を適用（既定: 空きマスにシンボルを置く）

        補助状態の更新が必要なルールはこのメソッドをオーバーライドします。
        """
        self._place(move.row, move.col, move.symbol.upper())

    def _place(self, row: int, col: int, symbol: str) -> None:
        """セルにシンボルを置き、手数を進める"""
        self._grid[row][col] = symbol
        self._move_count += 1

    def _snapshot(self) -> dict:
        """Undo用に現在の状態を丸ごと複製"""
        return {
            key: copy.deepcopy(value)
            for key, value in vars(self).items()
            if key not in self._SNAPSHOT_EXCLUDE
        }

    @property
    def can_undo(self) -> bool:
        """取り消せる手があるか"""
        return bool(self._history)

    def undo(self) -> bool:
        """
        直前の手を取り消す

        グリッド、手数、補助状態（使用済み数字、得点ライン、障害物など）を
        全て着手前の状態に戻します。

        Returns:
            取り消せたらTrue、履歴がなければFalse
        """
        if not self.can_undo:
            return False
        vars(self).update(self._history.pop())
        return True

    # === 判定 ===

    @abstractmethod
    def is_win(self, player: Player) -> bool:
        """playerのシンボルが勝利条件を満たしているか"""
        pass

    def is_lose(self, player: Player) -> bool:
        """playerが敗北条件を満たしているか（既定では常にFalse）"""
        return False

    @abstractmethod
    def is_draw(self, player: Player) -> bool:
        """引き分け条件を満たしているか"""
        pass

    def game_is_over(self, player: Player) -> bool:
        """対局が終了しているか"""
        return self.is_win(player) or self.is_lose(player) or self.is_draw(player)

    # === 自動プレイヤー ===

    def sample_move(self, symbol: str, rng: random.Random) -> Move:
        """
        盤面の範囲内で一様ランダムに手を生成

        占有状態は確認しません（合法性はupdate_boardが判定）。
        """
        return Move(
            rng.randrange(self._rows),
            rng.randrange(self._columns),
            symbol,
        )

    def render(self) -> str:
        """公開盤面をテキストで表現（1行1列）"""
        return "\n".join(" ".join(row) for row in self._grid)

    def __str__(self) -> str:
        return self.render()


class LineBoard(Board):
    """
    「同じシンボルをN個並べる」系ルールの共通実装

    勝利ラインは構築時に1度だけ列挙します。
    サブクラスは _build_lines() で独自のライン集合を定義できます。
    """

    line_length: int = 3

    def __init__(
        self,
        rows: int,
        columns: int,
        rng: Optional[random.Random] = None
    ) -> None:
        super().__init__(rows, columns, rng)
        self._lines: tuple[Line, ...] = tuple(self._build_lines())

    def _build_lines(self) -> Iterable[Line]:
        return iter_segments(self._rows, self._columns, self.line_length)

    @property
    def lines(self) -> tuple[Line, ...]:
        """勝利判定に使う全ライン"""
        return self._lines

    def _line_cells(self) -> list[list[str]]:
        """ライン判定に使うグリッド（メモリーモードでは隠し盤面）"""
        return self._grid

    def _line_owner(self, line: Line) -> Optional[str]:
        """ラインが1つのシンボルで埋まっていればそのシンボル"""
        cells = self._line_cells()
        first = cells[line[0][0]][line[0][1]]
        if first in MARKERS:
            return None
        if all(cells[row][col] == first for row, col in line[1:]):
            return first
        return None

    def has_line(self, symbol: str) -> bool:
        """symbolが完成させたラインが存在するか"""
        return any(self._line_owner(line) == symbol for line in self._lines)

    def completed_line_symbols(self) -> set[str]:
        """ラインを完成させている全シンボル"""
        owners = {self._line_owner(line) for line in self._lines}
        owners.discard(None)
        return owners

    def lines_through(self, row: int, col: int) -> list[Line]:
        """指定セルを含むライン"""
        return [line for line in self._lines if (row, col) in line]

    def is_win(self, player: Player) -> bool:
        return self.has_line(player.symbol)

    def is_draw(self, player: Player) -> bool:
        return self.is_full() and not self.completed_line_symbols()


class BoardRegistry:
    """
    盤面バリアントのレジストリ

    variant_idをキーとして盤面クラスを登録・生成します。

    使用例:
        BoardRegistry.register(ClassicBoard)
        board = BoardRegistry.create("classic")
        available = BoardRegistry.list_available()
    """

    _registry: dict[str, type[Board]] = {}

    @classmethod
    def register(cls, board_class: type[Board]) -> None:
        """
        盤面クラスを登録

        Raises:
            TypeError: Boardのサブクラスでない場合
            ValueError: 同じvariant_idが既に登録されている場合
        """
        if not isinstance(board_class, type) or not issubclass(board_class, Board):
            raise TypeError(f"{board_class} is not a subclass of Board")

        variant_id = board_class.variant_id
        if not variant_id:
            raise ValueError(f"{board_class.__name__} has no variant_id")
        if variant_id in cls._registry:
            raise ValueError(f"Variant '{variant_id}' is already registered")

        cls._registry[variant_id] = board_class

    @classmethod
    def get(cls, variant_id: str) -> type[Board]:
        """
        variant_idから盤面クラスを取得

        Raises:
            KeyError: 登録されていないvariant_idの場合
        """
        if variant_id not in cls._registry:
            raise KeyError(f"Variant '{variant_id}' is not registered")
        return cls._registry[variant_id]

    @classmethod
    def create(cls, variant_id: str, **kwargs) -> Board:
        """variant_idから盤面インスタンスを作成"""
        return cls.get(variant_id)(**kwargs)

    @classmethod
    def list_available(cls) -> list[str]:
        """登録済みvariant_idの一覧（アルファベット順）"""
        return sorted(cls._registry.keys())

    @classmethod
    def is_registered(cls, variant_id: str) -> bool:
        """variant_idが登録されているかチェック"""
        return variant_id in cls._registry

    @classmethod
    def unregister(cls, variant_id: str) -> bool:
        """登録を解除（主にテスト用）"""
        if variant_id in cls._registry:
            del cls._registry[variant_id]
            return True
        return False
