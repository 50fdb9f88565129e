"""
Variant XO Platform - Grid Variants

3x3以外の盤面や、形状マスク・重力・障害物を持つ変則ルール群を提供します。

- FourByFourBoard: 4x4盤面で3つ並べる
- SlidingBoard: 4x4盤面で自分の石を1マスずつスライドさせる
- ConnectFourBoard: 6x7の重力付き四目並べ
- PyramidBoard: ピラミッド形状の盤面
- DiamondBoard: ダイヤモンド形状の7x7盤面（3連と4連の交差で勝利）
- ObstacleBoard: 2手ごとに障害物が増える6x6盤面
- FiveByFiveBoard: 24手後に3連の数を比較する5x5盤面
"""

from typing import Iterable, Optional
import logging
import random

from game_core import (
    BLANK, MASKED, OBSTACLE,
    Board, BoardRegistry, Direction, Line, LineBoard, Move, MoveRejection, Player,
    iter_segments, segment_direction,
)


logger = logging.getLogger(__name__)


class FourByFourBoard(LineBoard):
    """
    4x4三目並べ

    4x4盤面内の全ての長さ3のライン（縦・横・斜め）が勝利ラインになります。
    """

    variant_id = "four_by_four"
    variant_name = "4x4 Tic-Tac-Toe"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(4, 4, rng)


class SlidingBoard(LineBoard):
    """
    4x4スライド三目並べ

    - 初期配置: 上段 X O X O、下段 O X O X
    - 1手 = 自分の石を上下左右いずれかの空きマスへ1マス移動
    - 移動後に長さ3のラインを完成させたら勝ち
    - 手番側が動かせる石を持たない場合、または手数上限に達した場合は引き分け

    Moveの(row, col)は移動元、directionは移動方向です。
    """

    variant_id = "sliding"
    variant_name = "4x4 Sliding Tic-Tac-Toe"

    INITIAL_ROWS = {0: "XOXO", 3: "OXOX"}

    def __init__(
        self,
        move_limit: Optional[int] = None,
        rng: Optional[random.Random] = None
    ) -> None:
        """
        Args:
            move_limit: 引き分けとする手数上限（Noneなら上限なし）
            rng: 乱数源
        """
        super().__init__(4, 4, rng)
        self._move_limit = move_limit
        for row, symbols in self.INITIAL_ROWS.items():
            self._grid[row] = list(symbols)

    @property
    def move_limit(self) -> Optional[int]:
        return self._move_limit

    def check_move(self, move: Move) -> Optional[MoveRejection]:
        if move.is_undo:
            return super().check_move(move)
        if not self.is_within_bounds(move.row, move.col):
            return MoveRejection.OUT_OF_BOUNDS
        if move.direction is None:
            return MoveRejection.ILLEGAL_MOVE
        # 動かせるのは手番側の石のみ
        mover = self.symbol_to_move
        if move.symbol.upper() != mover or self._grid[move.row][move.col] != mover:
            return MoveRejection.ILLEGAL_MOVE

        d_row, d_col = move.direction.delta
        to_row, to_col = move.row + d_row, move.col + d_col
        if not self.is_within_bounds(to_row, to_col):
            return MoveRejection.OUT_OF_BOUNDS
        if not self.is_empty(to_row, to_col):
            return MoveRejection.CELL_OCCUPIED
        return None

    def _apply_move(self, move: Move) -> None:
        d_row, d_col = move.direction.delta
        self._grid[move.row + d_row][move.col + d_col] = self._grid[move.row][move.col]
        self._grid[move.row][move.col] = BLANK
        self._move_count += 1

    def legal_slides(self, symbol: str) -> list[Move]:
        """symbolの石で可能な全スライド"""
        slides = []
        for row in range(self._rows):
            for col in range(self._columns):
                for direction in Direction:
                    move = Move(row, col, symbol, direction)
                    if self.check_move(move) is None:
                        slides.append(move)
        return slides

    def is_full(self) -> bool:
        return False

    def is_draw(self, player: Player) -> bool:
        if self.completed_line_symbols():
            return False
        if self._move_limit is not None and self._move_count >= self._move_limit:
            return True
        return not self.legal_slides(self.symbol_to_move)

    def sample_move(self, symbol: str, rng: random.Random) -> Move:
        return Move(
            rng.randrange(self._rows),
            rng.randrange(self._columns),
            symbol,
            rng.choice(list(Direction)),
        )


class ConnectFourBoard(LineBoard):
    """
    重力付き四目並べ（Connect Four）

    - 盤面: 6行 x 7列（row 5 が最下段）
    - 石は最下段、または直下のマスが埋まっているマスにのみ置ける
    - 縦・横・斜めに4つ並べたら勝ち
    """

    variant_id = "connect_four"
    variant_name = "Four-in-a-row"
    line_length = 4

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(6, 7, rng)

    def _check_variant_rules(self, move: Move) -> Optional[MoveRejection]:
        bottom_row = self._rows - 1
        if move.row == bottom_row or not self.is_empty(move.row + 1, move.col):
            return None
        return MoveRejection.ILLEGAL_MOVE


# ピラミッド盤面の勝利ライン（頂点(0, 2)を起点とする隣接関係）
PYRAMID_LINES: tuple[Line, ...] = (
    ((0, 2), (1, 2), (2, 2)),  # 頂点から縦
    ((0, 2), (1, 1), (2, 0)),  # 左辺
    ((0, 2), (1, 3), (2, 4)),  # 右辺
    ((1, 1), (1, 2), (1, 3)),  # 中段
    ((2, 1), (2, 2), (2, 3)),  # 底辺中央
)


class PyramidBoard(LineBoard):
    """
    ピラミッド三目並べ

    3x5盤面のうち、ピラミッド形状の9マスのみ使用可能です。
        . . X . .
        . X X X .
        X X X X X
    勝利ラインはピラミッドの形に沿った5本に固定されています。
    """

    variant_id = "pyramid"
    variant_name = "Pyramid Tic-Tac-Toe"

    APEX_COLUMN = 2

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(3, 5, rng)
        for row in range(self._rows):
            for col in range(self._columns):
                if not self.is_playable(row, col):
                    self._grid[row][col] = MASKED

    def is_playable(self, row: int, col: int) -> bool:
        return self.is_within_bounds(row, col) and abs(col - self.APEX_COLUMN) <= row

    def _build_lines(self) -> Iterable[Line]:
        return PYRAMID_LINES


class DiamondBoard(Board):
    """
    ダイヤモンド三目並べ

    7x7盤面のうち、中心からのマンハッタン距離が3以内の25マスを使用します。

    勝利条件:
    同じシンボルの「長さ3のライン」と「長さ4のライン」が存在し、
    両者が平行でなく、ちょうど1マスで交差していること。
    """

    variant_id = "diamond"
    variant_name = "Diamond Tic-Tac-Toe"

    SIZE = 7
    RADIUS = 3

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(self.SIZE, self.SIZE, rng)
        for row in range(self._rows):
            for col in range(self._columns):
                if not self.is_playable(row, col):
                    self._grid[row][col] = MASKED

        self._lines: dict[int, tuple[Line, ...]] = {
            length: tuple(
                line
                for line in iter_segments(self._rows, self._columns, length)
                if all(self.is_playable(row, col) for row, col in line)
            )
            for length in (3, 4)
        }

    def is_playable(self, row: int, col: int) -> bool:
        center = self.SIZE // 2
        return (
            self.is_within_bounds(row, col)
            and abs(row - center) + abs(col - center) <= self.RADIUS
        )

    def _owned_lines(self, symbol: str, length: int) -> list[Line]:
        return [
            line for line in self._lines[length]
            if all(self._grid[row][col] == symbol for row, col in line)
        ]

    def has_crossing_lines(self, symbol: str) -> bool:
        """symbolの3連と4連が非平行かつ1マスだけで交差しているか"""
        short_lines = self._owned_lines(symbol, 3)
        if not short_lines:
            return False

        for long_line in self._owned_lines(symbol, 4):
            long_direction = segment_direction(long_line)
            long_cells = set(long_line)
            for short_line in short_lines:
                if segment_direction(short_line) == long_direction:
                    continue
                if len(long_cells.intersection(short_line)) == 1:
                    return True
        return False

    def is_win(self, player: Player) -> bool:
        return self.has_crossing_lines(player.symbol)

    def is_draw(self, player: Player) -> bool:
        return self.is_full() and not any(
            self.has_crossing_lines(symbol) for symbol in self.player_symbols
        )


class ObstacleBoard(LineBoard):
    """
    障害物四目並べ

    - 盤面: 6x6
    - 縦・横・斜めに4つ並べたら勝ち（障害物マスはどのラインにも属せない）
    - 2手ごとに、ランダムな空きマス2つが恒久的な障害物になる
    - 空きマスがなくなったら引き分け

    不正な手（盤面外・埋まったマス）は他のルールと同様に拒否します。
    """

    variant_id = "obstacle"
    variant_name = "Obstacles Tic-Tac-Toe"
    line_length = 4

    OBSTACLE_INTERVAL = 2   # 何手ごとに障害物を追加するか
    OBSTACLES_PER_ROUND = 2

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(6, 6, rng)
        self._obstacles: set[tuple[int, int]] = set()

    @property
    def obstacles(self) -> frozenset[tuple[int, int]]:
        """障害物の座標"""
        return frozenset(self._obstacles)

    def empty_cells(self) -> list[tuple[int, int]]:
        """空きマスの一覧"""
        return [
            (row, col)
            for row in range(self._rows)
            for col in range(self._columns)
            if self._grid[row][col] == BLANK
        ]

    def _apply_move(self, move: Move) -> None:
        super()._apply_move(move)
        if self._move_count % self.OBSTACLE_INTERVAL == 0:
            self._add_obstacles()

    def _add_obstacles(self) -> None:
        empties = self.empty_cells()
        count = min(self.OBSTACLES_PER_ROUND, len(empties))
        for row, col in self._rng.sample(empties, count):
            self._grid[row][col] = OBSTACLE
            self._obstacles.add((row, col))
            logger.debug("obstacle placed at (%d, %d)", row, col)

    def is_full(self) -> bool:
        return not self.empty_cells()


class FiveByFiveBoard(LineBoard):
    """
    5x5三目並べ（得点制）

    - 24手で終了（1マスは空きのまま残る）
    - 終了時点で各シンボルの「長さ3のライン」の数を数え、多い側が勝ち
    - 同数なら引き分け

    集計は24手目の適用時に1度だけ行い、勝ち・負け・引き分けの判定は
    全て同じ集計結果を参照します。
    """

    variant_id = "five_by_five"
    variant_name = "5 x 5 Tic-Tac-Toe"

    MOVE_BUDGET = 24

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(5, 5, rng)
        self._final_tally: Optional[dict[str, int]] = None

    @property
    def final_tally(self) -> Optional[dict[str, int]]:
        """24手目で確定した集計（確定前はNone）"""
        if self._final_tally is None:
            return None
        return dict(self._final_tally)

    def line_counts(self) -> dict[str, int]:
        """現在の盤面での各シンボルの3連の数"""
        counts = {symbol: 0 for symbol in self.player_symbols}
        for line in self._lines:
            owner = self._line_owner(line)
            if owner is not None:
                counts[owner] = counts.get(owner, 0) + 1
        return counts

    def _check_variant_rules(self, move: Move) -> Optional[MoveRejection]:
        if self._move_count >= self.MOVE_BUDGET:
            return MoveRejection.ILLEGAL_MOVE
        return None

    def _apply_move(self, move: Move) -> None:
        super()._apply_move(move)
        if self._move_count == self.MOVE_BUDGET:
            self._final_tally = self.line_counts()
            logger.debug("five_by_five final tally: %s", self._final_tally)

    def _score_difference(self, player: Player) -> Optional[int]:
        if self._final_tally is None:
            return None
        mine = self._final_tally.get(player.symbol, 0)
        theirs = self._final_tally.get(self.opponent_symbol(player.symbol), 0)
        return mine - theirs

    def is_win(self, player: Player) -> bool:
        diff = self._score_difference(player)
        return diff is not None and diff > 0

    def is_lose(self, player: Player) -> bool:
        diff = self._score_difference(player)
        return diff is not None and diff < 0

    def is_draw(self, player: Player) -> bool:
        return self._score_difference(player) == 0

    def is_full(self) -> bool:
        return self._move_count >= self.MOVE_BUDGET

    def game_is_over(self, player: Player) -> bool:
        return self.is_full()


# === バリアントの登録 ===
for _board_class in (
    FourByFourBoard,
    SlidingBoard,
    ConnectFourBoard,
    PyramidBoard,
    DiamondBoard,
    ObstacleBoard,
    FiveByFiveBoard,
):
    BoardRegistry.register(_board_class)
