from tierboard.exceptions import TierboardException


class RankingNotFoundError(TierboardException):
    def __init__(self, ranking_id: str) -> None:
        self.ranking_id = ranking_id
        super().__init__(f"Ranking not found: {ranking_id}")


class TemplateNotFoundError(TierboardException):
    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}")


class PlacementValidationError(TierboardException):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PersistenceTransportError(TierboardException):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
