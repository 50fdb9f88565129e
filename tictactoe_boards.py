"""
Variant XO Platform - 3x3 Variants

3x3盤面を基本とする変則ルール群を提供します。

- ClassicBoard: 通常の三目並べ
- MisereBoard: 三目並べると負け
- InfinityBoard: 7手目以降、最古の石が消える
- NumericalBoard: 数字1-9を置き、合計15のラインで勝利
- SUSBoard: S/Uを置き「SUS」の数を競う
- WordBoard: 文字を置き、辞書の単語ができたら勝利
- MemoryBoard: 盤面が伏せられた三目並べ
- UltimateBoard: 3x3の小盤面9つを使うアルティメット三目並べ
"""

from collections import deque
from typing import Iterable, Optional
import logging
import random
import string

from game_core import (
    BLANK, DRAWN, HIDDEN, MARKERS,
    Board, BoardRegistry, Line, LineBoard, Move, MoveRejection, Player,
    iter_segments,
)
from word_dictionary import DEFAULT_WORDS


logger = logging.getLogger(__name__)

# 3x3盤面の8ライン
LINES_3X3: tuple[Line, ...] = tuple(iter_segments(3, 3, 3))


class ClassicBoard(LineBoard):
    """
    通常の三目並べ

    - 盤面: 3x3
    - 勝利条件: 縦・横・斜めのいずれかに3つ並べる
    - 引き分け: 盤面が埋まり、どのラインも完成していない
    """

    variant_id = "classic"
    variant_name = "Classic Tic-Tac-Toe"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(3, 3, rng)


class MisereBoard(ClassicBoard):
    """
    ミゼール三目並べ

    三目並べた側が負けになります。勝利は相手の敗北としてのみ発生します。
    """

    variant_id = "misere"
    variant_name = "Misere Tic-Tac-Toe"

    def is_win(self, player: Player) -> bool:
        return False

    def is_lose(self, player: Player) -> bool:
        return self.has_line(player.symbol)


class InfinityBoard(ClassicBoard):
    """
    インフィニティ三目並べ

    盤面上の石が6つを超えると、最も古い石が即座に取り除かれます。
    盤面が埋まることはないため、引き分けはありません。
    """

    variant_id = "infinity"
    variant_name = "Infinity Tic-Tac-Toe"

    # この手数を超えたら最古の石を消す
    EVICTION_THRESHOLD = 6

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(rng)
        self._placements: deque[tuple[int, int]] = deque()

    @property
    def placements(self) -> list[tuple[int, int]]:
        """盤面に残っている石の座標（古い順）"""
        return list(self._placements)

    def _apply_move(self, move: Move) -> None:
        super()._apply_move(move)
        self._placements.append((move.row, move.col))

        if self._move_count > self.EVICTION_THRESHOLD:
            row, col = self._placements.popleft()
            self._grid[row][col] = BLANK
            logger.debug("infinity evicted oldest placement at (%d, %d)", row, col)

    def is_draw(self, player: Player) -> bool:
        return False


class NumericalBoard(ClassicBoard):
    """
    数字三目並べ（魔方陣ルール）

    - 先手は奇数（1,3,5,7,9）、後手は偶数（2,4,6,8）を置く
    - 同じ数字は1度しか使えない
    - 3マス全て埋まったラインの合計が15になったら、その手を打った側の勝ち

    勝者は着手適用時に記録し、判定メソッドは記録を参照するだけです。
    """

    variant_id = "numerical"
    variant_name = "Numerical Tic-Tac-Toe"
    player_symbols = ("O", "E")  # 奇数側、偶数側

    MAGIC_SUM = 15
    ODD_DIGITS = (1, 3, 5, 7, 9)
    EVEN_DIGITS = (2, 4, 6, 8)

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(rng)
        self._used_digits: set[int] = set()
        self._winner: Optional[str] = None

    @property
    def used_digits(self) -> frozenset[int]:
        """使用済みの数字"""
        return frozenset(self._used_digits)

    @property
    def winner_symbol(self) -> Optional[str]:
        """合計15を完成させた側のシンボル"""
        return self._winner

    def digits_for(self, symbol: str) -> tuple[int, ...]:
        """プレイヤーシンボルが使える数字"""
        if symbol == self.player_symbols[0]:
            return self.ODD_DIGITS
        return self.EVEN_DIGITS

    def _is_valid_symbol(self, symbol: str) -> bool:
        return len(symbol) == 1 and symbol in "123456789"

    def _check_variant_rules(self, move: Move) -> Optional[MoveRejection]:
        digit = int(move.symbol)
        # 偶数番目の手（0始まり）は奇数、奇数番目の手は偶数
        expects_odd = self._move_count % 2 == 0
        if (digit % 2 == 1) != expects_odd:
            return MoveRejection.ILLEGAL_MOVE
        if digit in self._used_digits:
            return MoveRejection.ILLEGAL_MOVE
        return None

    def _is_magic(self, line: Line) -> bool:
        values = [self._grid[row][col] for row, col in line]
        if any(not value.isdigit() for value in values):
            return False
        return sum(int(value) for value in values) == self.MAGIC_SUM

    def _apply_move(self, move: Move) -> None:
        mover = self.symbol_to_move
        super()._apply_move(move)
        self._used_digits.add(int(move.symbol))

        if self._winner is None and any(
            self._is_magic(line) for line in self.lines_through(move.row, move.col)
        ):
            self._winner = mover

    def is_win(self, player: Player) -> bool:
        return self._winner is not None and self._winner == player.symbol

    def is_draw(self, player: Player) -> bool:
        return self.is_full() and self._winner is None

    def sample_move(self, symbol: str, rng: random.Random) -> Move:
        return Move(
            rng.randrange(self._rows),
            rng.randrange(self._columns),
            str(rng.choice(self.digits_for(symbol))),
        )


class SUSBoard(ClassicBoard):
    """
    SUSゲーム

    - 各プレイヤーは S または U を置く
    - ライン上に「SUS」ができると、その手を打った側に1点
    - 各ラインは対局中1度しか得点にならない（盤面インスタンスごとに管理）
    - 9手目で得点を比較して勝敗を決定
    """

    variant_id = "sus"
    variant_name = "SUS"
    player_symbols = ("S", "U")

    TARGET = "SUS"
    LETTERS = ("S", "U")

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(rng)
        self._claimed: dict[Line, str] = {}

    @property
    def claimed_lines(self) -> dict[Line, str]:
        """得点済みライン → 得点したシンボル"""
        return dict(self._claimed)

    def score(self, symbol: str) -> int:
        """symbolが獲得したSUSの数"""
        return sum(1 for owner in self._claimed.values() if owner == symbol)

    def _is_valid_symbol(self, symbol: str) -> bool:
        return symbol.upper() in self.LETTERS

    def _spells_target(self, line: Line) -> bool:
        return "".join(self._grid[row][col] for row, col in line) == self.TARGET

    def _apply_move(self, move: Move) -> None:
        mover = self.symbol_to_move
        super()._apply_move(move)

        for line in self.lines_through(move.row, move.col):
            if line not in self._claimed and self._spells_target(line):
                self._claimed[line] = mover

    def _final_comparison(self, player: Player) -> Optional[int]:
        """9手目以降なら (自分の得点 - 相手の得点)、それ以外はNone"""
        if not self.is_full():
            return None
        return self.score(player.symbol) - self.score(self.opponent_symbol(player.symbol))

    def is_win(self, player: Player) -> bool:
        diff = self._final_comparison(player)
        return diff is not None and diff > 0

    def is_lose(self, player: Player) -> bool:
        diff = self._final_comparison(player)
        return diff is not None and diff < 0

    def is_draw(self, player: Player) -> bool:
        return self._final_comparison(player) == 0

    def game_is_over(self, player: Player) -> bool:
        return self.is_full()

    def sample_move(self, symbol: str, rng: random.Random) -> Move:
        # どちらのプレイヤーも S と U の両方を置ける
        return Move(
            rng.randrange(self._rows),
            rng.randrange(self._columns),
            rng.choice(self.LETTERS),
        )


class WordBoard(ClassicBoard):
    """
    単語三目並べ

    各プレイヤーは任意のアルファベットを置きます。
    いずれかのラインが（正順でも逆順でも）辞書の単語になったら、
    その手を打った側の勝ちです。
    """

    variant_id = "word"
    variant_name = "Word Tic-Tac-Toe"

    def __init__(
        self,
        words: Optional[Iterable[str]] = None,
        rng: Optional[random.Random] = None
    ) -> None:
        super().__init__(rng)
        source = DEFAULT_WORDS if words is None else words
        self._words = frozenset(word.upper() for word in source)
        self._winner: Optional[str] = None

    @property
    def words(self) -> frozenset[str]:
        """使用中の辞書"""
        return self._words

    @property
    def winner_symbol(self) -> Optional[str]:
        """単語を完成させた側のシンボル"""
        return self._winner

    def _is_valid_symbol(self, symbol: str) -> bool:
        return len(symbol) == 1 and symbol.upper() in string.ascii_uppercase

    def _spells_word(self, line: Line) -> bool:
        letters = "".join(self._grid[row][col] for row, col in line)
        if any(letter in MARKERS for letter in letters):
            return False
        return letters in self._words or letters[::-1] in self._words

    def _apply_move(self, move: Move) -> None:
        mover = self.symbol_to_move
        super()._apply_move(move)

        if self._winner is None and any(
            self._spells_word(line) for line in self.lines_through(move.row, move.col)
        ):
            self._winner = mover

    def is_win(self, player: Player) -> bool:
        return self._winner is not None and self._winner == player.symbol

    def is_draw(self, player: Player) -> bool:
        return self.is_full() and self._winner is None

    def sample_move(self, symbol: str, rng: random.Random) -> Move:
        return Move(
            rng.randrange(self._rows),
            rng.randrange(self._columns),
            rng.choice(string.ascii_uppercase),
        )


class MemoryBoard(ClassicBoard):
    """
    メモリー三目並べ

    置いた石は公開盤面では伏せられ（'?'）、実際のシンボルは隠し盤面に保持します。
    合法性と勝敗は隠し盤面のみで判定します。
    """

    variant_id = "memory"
    variant_name = "Memory Tic-Tac-Toe"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(rng)
        self._hidden: list[list[str]] = [
            [BLANK for _ in range(self._columns)] for _ in range(self._rows)
        ]

    @property
    def hidden_grid(self) -> list[list[str]]:
        """隠し盤面のコピー（対局終了後の公開用）"""
        return [list(row) for row in self._hidden]

    def hidden_cell(self, row: int, col: int) -> str:
        """隠し盤面のセル値"""
        return self._hidden[row][col]

    def _line_cells(self) -> list[list[str]]:
        return self._hidden

    def is_empty(self, row: int, col: int) -> bool:
        if not self.is_within_bounds(row, col):
            return False
        return self._hidden[row][col] == BLANK

    def _place(self, row: int, col: int, symbol: str) -> None:
        self._hidden[row][col] = symbol
        self._grid[row][col] = HIDDEN
        self._move_count += 1


class UltimateBoard(Board):
    """
    アルティメット三目並べ

    9x9盤面を3x3の小盤面9つとして扱います。
    - 小盤面は通常の三目並べとして独立に決着（着手適用時に判定）
    - 小盤面の勝者はメタ盤面（3x3）の対応マスを占める
    - 勝者なしで埋まった小盤面はメタ盤面で DRAWN になる
    - メタ盤面で三目並べた側が勝利
    """

    variant_id = "ultimate"
    variant_name = "Ultimate Tic-Tac-Toe"

    SUB_SIZE = 3

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(9, 9, rng)
        self._meta: list[list[str]] = [
            [BLANK for _ in range(self.SUB_SIZE)] for _ in range(self.SUB_SIZE)
        ]

    @property
    def meta_board(self) -> list[list[str]]:
        """メタ盤面のコピー"""
        return [list(row) for row in self._meta]

    def sub_board_winner(self, sub_row: int, sub_col: int) -> str:
        """小盤面の決着状態（BLANK: 未決着、DRAWN: 引き分け、それ以外: 勝者）"""
        return self._meta[sub_row][sub_col]

    def _sub_line_owner(self, sub_row: int, sub_col: int, line: Line) -> Optional[str]:
        base_row = sub_row * self.SUB_SIZE
        base_col = sub_col * self.SUB_SIZE
        values = {self._grid[base_row + row][base_col + col] for row, col in line}
        if len(values) == 1:
            value = values.pop()
            if value not in MARKERS:
                return value
        return None

    def _sub_board_full(self, sub_row: int, sub_col: int) -> bool:
        base_row = sub_row * self.SUB_SIZE
        base_col = sub_col * self.SUB_SIZE
        return all(
            self._grid[base_row + row][base_col + col] != BLANK
            for row in range(self.SUB_SIZE)
            for col in range(self.SUB_SIZE)
        )

    def _apply_move(self, move: Move) -> None:
        super()._apply_move(move)

        sub_row = move.row // self.SUB_SIZE
        sub_col = move.col // self.SUB_SIZE
        if self._meta[sub_row][sub_col] != BLANK:
            return

        for line in LINES_3X3:
            owner = self._sub_line_owner(sub_row, sub_col, line)
            if owner is not None:
                self._meta[sub_row][sub_col] = owner
                logger.debug("ultimate sub-board (%d, %d) won by %s", sub_row, sub_col, owner)
                return

        if self._sub_board_full(sub_row, sub_col):
            self._meta[sub_row][sub_col] = DRAWN

    def _meta_line_symbols(self) -> set[str]:
        owners = set()
        for line in LINES_3X3:
            values = {self._meta[row][col] for row, col in line}
            if len(values) == 1:
                value = values.pop()
                if value not in MARKERS:
                    owners.add(value)
        return owners

    def is_win(self, player: Player) -> bool:
        return player.symbol in self._meta_line_symbols()

    def is_draw(self, player: Player) -> bool:
        meta_resolved = all(cell != BLANK for row in self._meta for cell in row)
        return (meta_resolved or self.is_full()) and not self._meta_line_symbols()


# === バリアントの登録 ===
for _board_class in (
    ClassicBoard,
    MisereBoard,
    InfinityBoard,
    NumericalBoard,
    SUSBoard,
    WordBoard,
    MemoryBoard,
    UltimateBoard,
):
    BoardRegistry.register(_board_class)
