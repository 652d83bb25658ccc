from tierboard.exceptions import TierboardException


class TemplateValidationError(TierboardException):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotCoOwnerError(TierboardException):
    def __init__(self, ranking_id: str, user_id: str) -> None:
        self.ranking_id = ranking_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not a co-owner of ranking {ranking_id}")


class EditSharingDisabledError(TierboardException):
    def __init__(self) -> None:
        super().__init__("Ranking not found or edit sharing disabled")
