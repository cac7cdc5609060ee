"""
Golf 9 AI Simulation Runner

Runs AI-vs-AI matches directly against the engine (no UI, no relay) and
reports score statistics.

Usage:
    golf9-simulate [num_games] [num_players] [num_rounds]
    golf9-simulate detail [num_players]

Examples:
    golf9-simulate 10          # Run 10 games with 2 players each
    golf9-simulate 50 4 5      # Run 50 five-round games with 4 players each
    golf9-simulate detail 3    # Play one round turn by turn
"""

import sys
from typing import Optional

from golf9.config import config
from golf9.game import GameOptions, GamePhase
from golf9.logging_config import setup_logging
from golf9.match import Match

# Hard stop for a single round; a real round ends long before this
MAX_ACTIONS_PER_ROUND = 500


class SimulationStats:
    """Track simulation statistics."""

    def __init__(self):
        self.games_played = 0
        self.total_rounds = 0
        self.total_turns = 0
        self.column_clears = 0
        self.ties = 0
        self.player_wins: dict[str, int] = {}
        self.player_scores: dict[str, list[int]] = {}
        self.round_scores: list[int] = []

    def record_game(self, match: Match):
        self.games_played += 1
        self.total_rounds += len(match.results)

        winner = match.winner()
        if winner is None:
            self.ties += 1
        else:
            self.player_wins[winner.name] = self.player_wins.get(winner.name, 0) + 1

        for player in match.state.players:
            self.player_scores.setdefault(player.name, []).append(player.total_score)

        for result in match.results:
            self.round_scores.extend(result.scores.values())

    def record_turn(self, cleared_column: bool):
        self.total_turns += 1
        if cleared_column:
            self.column_clears += 1

    def report(self) -> str:
        lines = [
            "=" * 50,
            "SIMULATION RESULTS",
            "=" * 50,
            f"Games played: {self.games_played}",
            f"Total rounds: {self.total_rounds}",
            f"Total turns: {self.total_turns}",
            f"Avg turns/game: {self.total_turns / max(1, self.games_played):.1f}",
            f"Column clears: {self.column_clears}",
            f"Tied games: {self.ties}",
            "",
            "WIN RATES:",
        ]

        total_wins = sum(self.player_wins.values())
        for name, wins in sorted(self.player_wins.items(), key=lambda x: -x[1]):
            pct = wins / max(1, total_wins) * 100
            lines.append(f"  {name}: {wins} wins ({pct:.1f}%)")

        lines.append("")
        lines.append("AVERAGE TOTALS:")
        for name, scores in sorted(self.player_scores.items()):
            avg = sum(scores) / max(1, len(scores))
            lines.append(f"  {name}: {avg:.1f}")

        if self.round_scores:
            avg_round = sum(self.round_scores) / len(self.round_scores)
            lines.append("")
            lines.append(f"Avg round score: {avg_round:.1f}")
            lines.append(f"Best round score: {min(self.round_scores)}")
            lines.append(f"Worst round score: {max(self.round_scores)}")

        return "\n".join(lines)


def play_round(match: Match, stats: Optional[SimulationStats] = None, verbose: bool = False) -> int:
    """
    Let the CPU play every seat until the current round ends.

    Returns:
        Number of actions taken.
    """
    actions = 0
    round_num = match.round_num
    while match.phase != GamePhase.ROUND_END and actions < MAX_ACTIONS_PER_ROUND:
        state_before = match.state
        acting = match.acting_index
        if not match.play_ai_turn():
            break
        actions += 1

        if state_before.phase == GamePhase.TURN and stats is not None:
            # Same player still current after a turn means a column cleared
            cleared = (
                match.phase == GamePhase.TURN
                and match.state.current_player_index == acting
            )
            stats.record_turn(cleared)

        if verbose and state_before.phase == GamePhase.TURN:
            player = match.state.players[acting]
            print(f"  Turn {actions}: {player.name} - discard now {match.state.top_discard}")

    if match.phase != GamePhase.ROUND_END:
        raise RuntimeError(f"Round {round_num} did not finish after {actions} actions")
    return actions


def run_game(num_players: int, options: GameOptions, stats: SimulationStats,
             seed: Optional[int] = None) -> Match:
    """Play a complete match with CPU players in every seat."""
    names = [f"CPU {i + 1}" for i in range(num_players)]
    match = Match(num_players, options, names=names, seed=seed)

    while True:
        play_round(match, stats)
        if match.game_over:
            break
        match.next_round()

    stats.record_game(match)
    return match


def run_simulation(num_games: int = 10, num_players: int = 2, num_rounds: int = 9,
                   verbose: bool = True):
    """Run multiple games and report statistics."""
    print(f"\nRunning {num_games} games with {num_players} players each...")
    print("=" * 50)

    stats = SimulationStats()
    options = GameOptions(num_rounds=num_rounds)

    for i in range(num_games):
        match = run_game(num_players, options, stats)
        if verbose:
            winner = match.winner()
            label = f"{winner.name} ({winner.total_score})" if winner else "tie"
            print(f"Game {i + 1}/{num_games}: winner {label}")

    print("\n")
    print(stats.report())
    return stats


def run_detailed_round(num_players: int = 2):
    """Play a single round with turn-by-turn output."""
    print(f"\nRunning detailed round with {num_players} players...")
    print("=" * 50)

    names = [f"CPU {i + 1}" for i in range(num_players)]
    match = Match(num_players, GameOptions(num_rounds=5), names=names)

    print(f"Starting discard: {match.state.top_discard}")
    play_round(match, verbose=True)

    print("\n" + "=" * 50)
    print("ROUND SCORES")
    print("=" * 50)
    for player in sorted(match.state.players, key=lambda p: p.score):
        rows = [" ".join(f"{str(card):>4}" for card in row) for row in player.grid]
        print(f"  {player.name}: {player.score} points")
        for row in rows:
            print(f"    {row}")


def main(argv: Optional[list[str]] = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    setup_logging(config.LOG_LEVEL, config.ENVIRONMENT)

    if argv and argv[0] == "detail":
        num_players = int(argv[1]) if len(argv) > 1 else 2
        run_detailed_round(num_players)
        return

    num_games = int(argv[0]) if len(argv) > 0 else 10
    num_players = int(argv[1]) if len(argv) > 1 else 2
    num_rounds = int(argv[2]) if len(argv) > 2 else 9
    run_simulation(num_games, num_players, num_rounds)


if __name__ == "__main__":
    main()
