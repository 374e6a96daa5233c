def apply_vote(voters: dict, user_id: str, direction: str) -> tuple[dict, int]:
    """
    One vote per user. Repeating a vote is a no-op, switching flips it.
    Returns (new voters map, delta to add to the score).
    """
    value = 1 if direction == "up" else -1
    previous = voters.get(user_id, 0)
    voters = {**voters, user_id: value}
    return voters, value - previous
