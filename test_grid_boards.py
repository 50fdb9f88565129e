"""
Variant XO Platform - Grid Variant Tests

grid_boards.py の各バリアントのルールを検証します。
"""

import random

import pytest

from game_core import BLANK, MASKED, OBSTACLE, Direction, Move, MoveRejection
from grid_boards import (
    ConnectFourBoard,
    DiamondBoard,
    FiveByFiveBoard,
    FourByFourBoard,
    ObstacleBoard,
    PyramidBoard,
    SlidingBoard,
)
from conftest import play


class LastCellsRng(random.Random):
    """sample() が常に候補の末尾を返す決定的な乱数源"""

    def sample(self, population, k, **kwargs):
        return list(population)[len(population) - k:]


class TestFourByFourBoard:
    """FourByFourBoardのテスト"""

    @pytest.mark.parametrize("cells", [
        [(0, 1), (0, 2), (0, 3)],
        [(1, 3), (2, 3), (3, 3)],
        [(1, 1), (2, 2), (3, 3)],
        [(0, 3), (1, 2), (2, 1)],
    ])
    def test_any_triplet_wins(self, cells, make_player):
        """4x4内の任意の3連で勝ち"""
        board = FourByFourBoard()
        play(board, *(Move(row, col, "X") for row, col in cells))
        assert board.is_win(make_player(board, "X")) is True

    def test_broken_triplet_does_not_win(self, make_player):
        """間が空いた並びは勝ちではない"""
        board = FourByFourBoard()
        play(board, Move(0, 0, "X"), Move(0, 1, "X"), Move(0, 3, "X"))
        assert board.is_win(make_player(board, "X")) is False


class TestSlidingBoard:
    """SlidingBoardのテスト"""

    def test_initial_layout(self):
        """上段と下段に石が置かれた状態で始まる"""
        board = SlidingBoard()
        assert board.grid[0] == ["X", "O", "X", "O"]
        assert board.grid[3] == ["O", "X", "O", "X"]
        assert board.grid[1] == [BLANK] * 4
        assert board.move_count == 0

    def test_slide_moves_piece(self):
        """自分の石を空きマスへ1マス動かせる"""
        board = SlidingBoard()
        assert board.update_board(Move(0, 0, "X", Direction.D)) is True
        assert board.get_cell(0, 0) == BLANK
        assert board.get_cell(1, 0) == "X"
        assert board.move_count == 1

    def test_opponent_piece_cannot_be_moved(self):
        """相手の石は動かせない"""
        board = SlidingBoard()
        assert board.check_move(Move(0, 1, "X", Direction.D)) == MoveRejection.ILLEGAL_MOVE

    def test_cannot_slide_opponent_piece_on_own_turn(self):
        """手番でない側の石は、そのシンボルを名乗っても動かせない"""
        board = SlidingBoard()
        move = Move(0, 1, "O", Direction.D)

        assert board.check_move(move) == MoveRejection.ILLEGAL_MOVE
        assert board.update_board(move) is False
        assert board.grid[0] == ["X", "O", "X", "O"]
        assert board.move_count == 0

    def test_blank_slide_rejected(self):
        """空きマーカーで空きマスを動かす手は拒否され、手数も増えない"""
        board = SlidingBoard()
        move = Move(1, 1, BLANK, Direction.D)

        assert board.check_move(move) == MoveRejection.ILLEGAL_MOVE
        assert board.update_board(move) is False
        assert board.move_count == 0

    def test_second_player_slides_after_first(self):
        """先手のスライド後は後手の石だけが動かせる"""
        board = SlidingBoard()
        board.update_board(Move(0, 0, "X", Direction.D))

        assert board.check_move(Move(0, 2, "X", Direction.D)) == MoveRejection.ILLEGAL_MOVE
        assert board.update_board(Move(0, 1, "O", Direction.L)) is True
        assert board.get_cell(0, 0) == "O"

    def test_empty_source_rejected(self):
        """空きマスからは動かせない"""
        board = SlidingBoard()
        assert board.check_move(Move(1, 1, "X", Direction.D)) == MoveRejection.ILLEGAL_MOVE

    def test_missing_direction_rejected(self):
        """方向のない手は拒否される"""
        board = SlidingBoard()
        assert board.check_move(Move(0, 0, "X")) == MoveRejection.ILLEGAL_MOVE

    def test_destination_off_board_rejected(self):
        """盤面外への移動は拒否される"""
        board = SlidingBoard()
        assert board.check_move(Move(0, 0, "X", Direction.U)) == MoveRejection.OUT_OF_BOUNDS
        assert board.check_move(Move(0, 0, "X", Direction.L)) == MoveRejection.OUT_OF_BOUNDS

    def test_destination_occupied_rejected(self):
        """埋まったマスへの移動は拒否される"""
        board = SlidingBoard()
        assert board.update_board(Move(0, 0, "X", Direction.R)) is False
        assert board.grid[0] == ["X", "O", "X", "O"]

    def test_slides_form_winning_line(self, make_player):
        """スライドで3連を作ると勝ち"""
        board = SlidingBoard()
        accepted = play(
            board,
            Move(0, 0, "X", Direction.D),
            Move(0, 3, "O", Direction.D),
            Move(0, 2, "X", Direction.D),
            Move(1, 3, "O", Direction.D),
            Move(3, 1, "X", Direction.U),
            Move(2, 3, "O", Direction.U),
        )
        assert all(accepted)
        x_player = make_player(board, "X")
        assert board.is_win(x_player) is False

        assert board.update_board(Move(2, 1, "X", Direction.U)) is True
        assert board.grid[1] == ["X", "X", "X", "O"]
        assert board.is_win(x_player) is True
        assert board.is_draw(x_player) is False

    def test_move_limit_draw(self, make_player):
        """手数上限に達したら引き分け"""
        board = SlidingBoard(move_limit=1)
        board.update_board(Move(0, 0, "X", Direction.D))
        assert board.is_draw(make_player(board, "X")) is True

    def test_legal_slides(self):
        """初期配置では上段の石は下へ、下段の石は上へのみ動ける"""
        board = SlidingBoard()
        slides = board.legal_slides("X")
        assert set(slides) == {
            Move(0, 0, "X", Direction.D),
            Move(0, 2, "X", Direction.D),
            Move(3, 1, "X", Direction.U),
            Move(3, 3, "X", Direction.U),
        }


class TestConnectFourBoard:
    """ConnectFourBoardのテスト"""

    @pytest.mark.parametrize("col", range(7))
    def test_bottom_row_always_legal_on_empty_board(self, col):
        """空の盤面では最下段（row 5）はどの列でも合法"""
        board = ConnectFourBoard()
        assert board.update_board(Move(5, col, "X")) is True

    @pytest.mark.parametrize("col", range(7))
    def test_floating_move_illegal_until_supported(self, col):
        """row 4 は直下が埋まるまで不正"""
        board = ConnectFourBoard()
        assert board.check_move(Move(4, col, "X")) == MoveRejection.ILLEGAL_MOVE
        assert board.update_board(Move(4, col, "X")) is False

        board.update_board(Move(5, col, "O"))
        assert board.update_board(Move(4, col, "X")) is True

    def test_horizontal_win(self, make_player):
        """横4連で勝ち"""
        board = ConnectFourBoard()
        play(board, *(Move(5, col, "X") for col in range(1, 5)))
        assert board.is_win(make_player(board, "X")) is True

    def test_vertical_win(self, make_player):
        """縦4連で勝ち"""
        board = ConnectFourBoard()
        play(board, *(Move(row, 6, "O") for row in range(5, 1, -1)))
        assert board.is_win(make_player(board, "O")) is True

    def test_diagonal_win(self, make_player):
        """斜め4連で勝ち"""
        board = ConnectFourBoard()
        play(
            board,
            Move(5, 1, "O"), Move(5, 2, "O"), Move(4, 2, "O"),
            Move(5, 3, "O"), Move(4, 3, "O"), Move(3, 3, "O"),
        )
        play(board, Move(5, 0, "X"), Move(4, 1, "X"), Move(3, 2, "X"), Move(2, 3, "X"))

        assert board.is_win(make_player(board, "X")) is True
        assert board.is_win(make_player(board, "O")) is False

    def test_three_in_a_row_does_not_win(self, make_player):
        """3連では勝ちではない"""
        board = ConnectFourBoard()
        play(board, *(Move(5, col, "X") for col in range(3)))
        assert board.is_win(make_player(board, "X")) is False


class TestPyramidBoard:
    """PyramidBoardのテスト"""

    def test_playable_cells(self):
        """使用可能なマスは9つ"""
        board = PyramidBoard()
        assert board.playable_cell_count == 9
        assert board.get_cell(0, 0) == MASKED
        assert board.get_cell(0, 2) == BLANK

    @pytest.mark.parametrize("row,col", [(0, 0), (0, 1), (0, 3), (0, 4), (1, 0), (1, 4)])
    def test_masked_cells_rejected(self, row, col):
        """マスクされたマスへの着手は拒否され、盤面は変化しない"""
        board = PyramidBoard()
        before = board.grid
        assert board.check_move(Move(row, col, "X")) == MoveRejection.ILLEGAL_MOVE
        assert board.update_board(Move(row, col, "X")) is False
        assert board.grid == before

    @pytest.mark.parametrize("cells", [
        [(0, 2), (1, 2), (2, 2)],
        [(0, 2), (1, 1), (2, 0)],
        [(0, 2), (1, 3), (2, 4)],
        [(1, 1), (1, 2), (1, 3)],
        [(2, 1), (2, 2), (2, 3)],
    ])
    def test_pyramid_lines_win(self, cells, make_player):
        """ピラミッドの5本のラインで勝ち"""
        board = PyramidBoard()
        play(board, *(Move(row, col, "X") for row, col in cells))
        assert board.is_win(make_player(board, "X")) is True

    def test_base_corner_triplet_does_not_win(self, make_player):
        """底辺の端を含む3連は勝利ラインではない"""
        board = PyramidBoard()
        play(board, Move(2, 0, "X"), Move(2, 1, "X"), Move(2, 2, "X"))
        assert board.is_win(make_player(board, "X")) is False


class TestDiamondBoard:
    """DiamondBoardのテスト"""

    def test_playable_cells(self):
        """中心からの距離3以内の25マス"""
        board = DiamondBoard()
        assert board.playable_cell_count == 25
        assert board.is_playable(3, 0) is True
        assert board.is_playable(0, 0) is False

    def test_masked_cell_rejected(self):
        """マスク外への着手は拒否される"""
        board = DiamondBoard()
        assert board.update_board(Move(0, 0, "X")) is False
        assert board.move_count == 0

    def test_crossing_three_and_four_win(self, make_player):
        """3連と4連が1マスで交差すれば勝ち"""
        board = DiamondBoard()
        play(board, *(Move(4, col, "X") for col in range(2, 6)))
        play(board, Move(2, 3, "X"), Move(3, 3, "X"))
        assert board.is_win(make_player(board, "X")) is True
        assert board.is_win(make_player(board, "O")) is False

    def test_parallel_lines_do_not_win(self, make_player):
        """平行な3連と4連では勝ちではない"""
        board = DiamondBoard()
        play(board, *(Move(4, col, "X") for col in range(2, 6)))
        play(board, Move(2, 2, "X"), Move(2, 3, "X"), Move(2, 4, "X"))
        assert board.is_win(make_player(board, "X")) is False

    def test_disjoint_lines_do_not_win(self, make_player):
        """交差しない3連と4連では勝ちではない"""
        board = DiamondBoard()
        play(board, *(Move(4, col, "X") for col in range(2, 6)))
        play(board, Move(0, 3, "X"), Move(1, 3, "X"), Move(2, 3, "X"))
        assert board.is_win(make_player(board, "X")) is False

    def test_four_alone_does_not_win(self, make_player):
        """4連だけでは勝ちではない"""
        board = DiamondBoard()
        play(board, *(Move(3, col, "X") for col in range(1, 5)))
        assert board.is_win(make_player(board, "X")) is False


class TestObstacleBoard:
    """ObstacleBoardのテスト"""

    def test_obstacles_added_every_second_placement(self):
        """2手ごとに空きマス2つが障害物になる"""
        board = ObstacleBoard(rng=LastCellsRng())
        board.update_board(Move(0, 0, "X"))
        assert board.obstacles == frozenset()

        board.update_board(Move(0, 1, "O"))
        assert board.obstacles == {(5, 4), (5, 5)}
        for row, col in board.obstacles:
            assert board.get_cell(row, col) == OBSTACLE

        play(board, Move(1, 0, "X"), Move(1, 1, "O"))
        assert board.obstacles == {(5, 2), (5, 3), (5, 4), (5, 5)}
        assert board.move_count == 4

    def test_obstacles_only_on_empty_cells(self):
        """障害物は空きマスにのみ置かれる"""
        board = ObstacleBoard(rng=random.Random(7))
        play(board, Move(0, 0, "X"), Move(0, 1, "O"))
        assert len(board.obstacles) == 2
        assert (0, 0) not in board.obstacles
        assert (0, 1) not in board.obstacles
        assert len(board.empty_cells()) == 36 - 4

    def test_obstacle_cell_rejected(self):
        """障害物のマスには置けない"""
        board = ObstacleBoard(rng=LastCellsRng())
        play(board, Move(0, 0, "X"), Move(0, 1, "O"))

        assert (5, 5) in board.obstacles
        assert board.check_move(Move(5, 5, "X")) == MoveRejection.CELL_OCCUPIED
        assert board.update_board(Move(5, 5, "X")) is False
        assert board.move_count == 2

    def test_illegal_moves_are_rejected(self):
        """盤面外・埋まったマスは受理されたことにならない"""
        board = ObstacleBoard(rng=LastCellsRng())
        assert board.update_board(Move(6, 0, "X")) is False
        board.update_board(Move(0, 0, "X"))
        assert board.update_board(Move(0, 0, "O")) is False
        assert board.move_count == 1

    def test_four_in_a_row_wins(self, make_player):
        """4連で勝ち"""
        board = ObstacleBoard(rng=LastCellsRng())
        play(
            board,
            Move(0, 0, "X"), Move(1, 0, "O"),
            Move(0, 1, "X"), Move(1, 1, "O"),
            Move(0, 2, "X"), Move(1, 2, "O"),
            Move(0, 3, "X"),
        )
        assert board.is_win(make_player(board, "X")) is True
        assert board.is_win(make_player(board, "O")) is False

    def test_obstacles_block_line(self, make_player):
        """障害物で塞がれたラインは完成できない"""
        board = ObstacleBoard(rng=LastCellsRng())
        # 2手目の後に (5, 4) (5, 5)、4手目の後に (5, 2) (5, 3) が障害物になる
        play(
            board,
            Move(5, 0, "X"), Move(0, 0, "O"),
            Move(5, 1, "X"), Move(0, 1, "O"),
        )
        assert board.update_board(Move(5, 2, "X")) is False
        assert board.get_cell(5, 2) == OBSTACLE
        assert board.is_win(make_player(board, "X")) is False


# 24手後に X が3本、O が2本の3連を持つ配置（(4, 0) は空き）
FIVE_BY_FIVE_LAYOUT = [
    "XXXOO",
    "OOOXX",
    "XXXOO",
    "OOXXO",
    ".XOOX",
]


def five_by_five_moves() -> list[Move]:
    x_moves, o_moves = [], []
    for row, symbols in enumerate(FIVE_BY_FIVE_LAYOUT):
        for col, symbol in enumerate(symbols):
            if symbol == "X":
                x_moves.append(Move(row, col, "X"))
            elif symbol == "O":
                o_moves.append(Move(row, col, "O"))
    moves = []
    for x_move, o_move in zip(x_moves, o_moves):
        moves.extend([x_move, o_move])
    return moves


class TestFiveByFiveBoard:
    """FiveByFiveBoardのテスト"""

    def test_layout_has_twenty_four_moves(self):
        """テスト用配置は X と O が12手ずつ"""
        assert len(five_by_five_moves()) == 24

    def test_three_lines_beat_two(self, make_player):
        """24手後、3連が3本のXが2本のOに勝つ"""
        board = FiveByFiveBoard()
        assert all(play(board, *five_by_five_moves()))
        x_player = make_player(board, "X")
        o_player = make_player(board, "O")

        assert board.final_tally == {"X": 3, "O": 2}
        assert board.is_win(x_player) is True
        assert board.is_win(o_player) is False
        assert board.is_lose(o_player) is True
        assert board.is_draw(x_player) is False
        assert board.is_draw(o_player) is False
        assert board.game_is_over(o_player) is True

    def test_predicates_are_consistent_across_calls(self, make_player):
        """判定を繰り返しても結果は変わらない"""
        board = FiveByFiveBoard()
        play(board, *five_by_five_moves())
        x_player = make_player(board, "X")
        assert [board.is_win(x_player) for _ in range(3)] == [True, True, True]

    def test_no_result_before_budget(self, make_player):
        """24手未満では勝敗がつかない"""
        board = FiveByFiveBoard()
        play(board, *five_by_five_moves()[:23])
        x_player = make_player(board, "X")

        assert board.final_tally is None
        assert board.is_win(x_player) is False
        assert board.is_draw(x_player) is False
        assert board.game_is_over(x_player) is False

    def test_move_after_budget_rejected(self):
        """24手を超える着手は拒否される"""
        board = FiveByFiveBoard()
        play(board, *five_by_five_moves())
        assert board.check_move(Move(4, 0, "X")) == MoveRejection.ILLEGAL_MOVE
        assert board.move_count == 24

    def test_line_counts_current_position(self):
        """現時点の3連の数"""
        board = FiveByFiveBoard()
        play(board, Move(0, 0, "X"), Move(0, 1, "X"), Move(0, 2, "X"), Move(0, 3, "X"))
        assert board.line_counts() == {"X": 2, "O": 0}
