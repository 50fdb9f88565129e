"""
自動対戦バッチスクリプト

自動プレイヤー同士を指定バリアントで複数回対戦させ、結果を集計します。

使用例:
    # デフォルト設定（クラシックを10回）
    python run_matches.py

    # バリアントとシードを指定
    python run_matches.py --variant connect_four --games 50 --seed 7

    # 単語三目並べで辞書ファイルを使用
    python run_matches.py --variant word --words ./words.txt

    # 詳細表示
    python run_matches.py --variant sus --verbose
"""

import argparse
import logging
from collections import Counter
from datetime import datetime
from typing import Optional

from game_core import BoardRegistry
from game_manager import GameManager, MatchConfig, MatchOutcome, create_match, is_all_automated
from word_dictionary import load_words


logger = logging.getLogger(__name__)


def build_config(args: argparse.Namespace, game_number: int) -> MatchConfig:
    """コマンドライン引数から1対局分の設定を作成"""
    # シード指定時は対局ごとにずらして再現可能にする
    seed: Optional[int] = None if args.seed is None else args.seed + game_number

    board_options = {}
    if args.variant == "word" and args.words:
        board_options["words"] = load_words(args.words)
    if args.variant == "sliding" and args.move_limit:
        board_options["move_limit"] = args.move_limit

    return MatchConfig(variant_id=args.variant, seed=seed, board_options=board_options)


def run_single_match(config: MatchConfig, game_number: int, verbose: bool = False):
    """1対局を実行"""
    if not is_all_automated(config):
        raise ValueError("run_matches only drives automated players")

    manager: GameManager = create_match(config)
    result = manager.run()

    if verbose:
        winner = result.winner.name if result.winner else "-"
        print(f"  Game {game_number}: {result.outcome.name} (winner: {winner}, "
              f"{result.moves} moves, {result.rejected_moves} rejected)")
        print("    " + manager.board.render().replace("\n", "\n    "))

    return result


def run_matches(args: argparse.Namespace) -> Counter:
    """複数対局を実行して結果を集計"""
    print("=" * 60)
    print("Automated Match Runner")
    print("=" * 60)
    print(f"Variant: {args.variant}")
    print(f"Games: {args.games}")
    print(f"Seed: {args.seed}")
    print("=" * 60)

    results: Counter = Counter()
    rejected_total = 0
    start_time = datetime.now()

    for i in range(1, args.games + 1):
        config = build_config(args, i)
        result = run_single_match(config, i, args.verbose)
        rejected_total += result.rejected_moves

        if result.outcome == MatchOutcome.DRAW:
            results["Draw"] += 1
        else:
            results[result.winner.name] += 1

        if not args.verbose:
            print(f"\rProgress: {i}/{args.games} games completed", end="", flush=True)

    if not args.verbose:
        print()

    elapsed = datetime.now() - start_time

    print("=" * 60)
    print("Results Summary")
    print("=" * 60)
    for label in ("Player 1", "Player 2", "Draw"):
        count = results[label]
        rate = count / args.games * 100 if args.games else 0.0
        print(f"{label}: {count} ({rate:.1f}%)")
    print(f"Rejected moves: {rejected_total}")
    print(f"Total time: {elapsed}")
    print("=" * 60)

    return results


def main():
    parser = argparse.ArgumentParser(
        description="Run automated matches on any board variant",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_matches.py                               # Classic, 10 games
  python run_matches.py -r connect_four -n 50 -s 7    # Connect four, seeded
  python run_matches.py -r word --words words.txt     # Word variant with a word list
        """
    )

    parser.add_argument(
        "--variant", "-r",
        choices=BoardRegistry.list_available(),
        default="classic",
        help="Board variant (default: classic)"
    )
    parser.add_argument(
        "--games", "-n",
        type=int,
        default=10,
        help="Number of games to play (default: 10)"
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Base random seed (default: unseeded)"
    )
    parser.add_argument(
        "--words",
        default=None,
        help="Word list file for the word variant (one word per line)"
    )
    parser.add_argument(
        "--move-limit",
        type=int,
        default=None,
        help="Move limit after which a sliding match is drawn"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show every game and debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_matches(args)


if __name__ == "__main__":
    main()
