from chronos.services.games.progression import TOTAL_LEVELS, completion_percentage, round_half_up


def leaderboard_row(team, rank: int, total_levels: int = TOTAL_LEVELS) -> dict:
    row = team.to_dict()
    answered = team.correct_questions + team.incorrect_questions
    row.update(
        rank=rank,
        total_questions=team.correct_questions + team.incorrect_questions + team.skipped_questions,
        accuracy=round_half_up(team.correct_questions / answered * 100) if answered > 0 else 0,
        completion_percentage=completion_percentage(team.current_level, total_levels),
    )
    return row


def build_leaderboard(teams, total_levels: int = TOTAL_LEVELS) -> list:
    """Rank teams by score, highest first. Ties keep the incoming order."""
    ordered = sorted(teams, key=lambda t: -t.score)
    return [leaderboard_row(team, rank, total_levels) for rank, team in enumerate(ordered, 1)]
