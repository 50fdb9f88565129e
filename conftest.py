"""
Pytest configuration and shared fixtures
"""

import random

import pytest

from game_core import Board, Player, PlayerKind


@pytest.fixture
def rng():
    """シード固定の乱数源"""
    return random.Random(1234)


@pytest.fixture
def make_player():
    """盤面とシンボルからプレイヤーを作るファクトリ"""
    def _make(board: Board, symbol: str, kind: PlayerKind = PlayerKind.HUMAN) -> Player:
        return Player(name=f"Player {symbol}", symbol=symbol, kind=kind, board=board)
    return _make


def play(board: Board, *moves) -> list[bool]:
    """複数の手を順に適用し、それぞれの受理結果を返す"""
    return [board.update_board(move) for move in moves]
