from tierboard.exceptions import TierboardException


class ReadOnlyBoardError(TierboardException):
    def __init__(self, ranking_id: str) -> None:
        self.ranking_id = ranking_id
        super().__init__(f"Ranking {ranking_id} is open read-only")
