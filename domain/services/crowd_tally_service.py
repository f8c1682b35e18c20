"""
Crowd verdict domain service.
"""

from domain.models.debate import CON, PRO, TIE


def determine_crowd_winner(
    pro_votes: int, con_votes: int, tie_votes: int, min_votes: int = 10
) -> str | None:
    """
    Derive the crowd's verdict from a vote tally.

    Pro or con wins only with a strict plurality over both other outcomes;
    everything else (a tie vote lead or a tie for first) is a tie. Returns
    None until at least min_votes votes have been cast.
    """
    if pro_votes + con_votes + tie_votes < min_votes:
        return None
    if pro_votes > con_votes and pro_votes > tie_votes:
        return PRO
    if con_votes > pro_votes and con_votes > tie_votes:
        return CON
    return TIE
