class DailyGameError(Exception):
    pass


class InvalidImageCollectionError(DailyGameError):
    pass


class RoundGenerationError(DailyGameError):
    pass
