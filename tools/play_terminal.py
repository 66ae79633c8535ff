"""
Terminal Play Mode
==================

Play the merge game interactively in a text terminal.

Controls:
    - 0..9 (any column index): Drop the next item into that column
    - r: Restart game
    - q: Quit

Usage:
    python -m tools.play_terminal [--seed SEED] [--config PATH] [--debug]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Optional, TextIO

from merge_game.merge_core.config_loader import load_config
from merge_game.merge_core.game import MergeGame, DropResult


class TerminalGame:
    """
    Line-oriented game loop around a MergeGame.

    Input and output streams are injectable so the loop can be driven
    from tests.
    """

    def __init__(
        self,
        game: MergeGame,
        read_line: Callable[[], str] = input,
        out: TextIO = sys.stdout
    ):
        self._game = game
        self._read_line = read_line
        self._out = out

    def _print(self, text: str = "") -> None:
        self._out.write(text + "\n")

    def _render(self) -> None:
        catalog = self._game.catalog
        next_item = self._game.next_item
        self._print()
        self._print(self._game.board.render_text())
        self._print(f"Score: {self._game.score}   "
                    f"Next: {next_item} ({catalog[next_item].name})")

    def _report(self, result: DropResult) -> None:
        if not result.success:
            self._print(f"! {result.message}: {result.detail}")
            return
        for event in result.merges:
            self._print(f"  merged {event.group_size} x {event.from_item} -> "
                        f"{event.to_item} (+{event.points})")
        if result.points_earned:
            self._print(f"  +{result.points_earned} points")

    def run(self) -> int:
        """
        Run until the player quits or input ends.

        Returns:
            Final score.
        """
        self._render()
        while True:
            if self._game.game_over:
                self._print(f"GAME OVER - final score {self._game.score}. "
                            f"'r' to restart, 'q' to quit.")
            try:
                line = self._read_line().strip().lower()
            except EOFError:
                break

            if line in ("q", "quit", "exit"):
                break
            if line in ("r", "restart"):
                self._game.reset()
                self._render()
                continue
            if not line.isdecimal():
                self._print(f"Enter a column 0-{self._game.width - 1}, 'r' or 'q'")
                continue

            result = self._game.drop(int(line), self._game.next_item)
            self._report(result)
            self._render()

        return self._game.score


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Play the merge game in a terminal")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--config", type=str, default=None, help="Path to game_config.yaml")
    parser.add_argument("--debug", action="store_true", help="Show engine debug logging")
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="[%(levelname)s] %(name)s: %(message)s")

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}")
        return 1

    game = MergeGame(config=config, seed=args.seed)
    score = TerminalGame(game).run()
    print(f"Final score: {score}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
