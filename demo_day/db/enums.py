# db/enums.py
import enum

class UserRole(enum.StrEnum):
    ADMIN = "admin"
    MEMBER = "member"

class EventMode(enum.StrEnum):
    STANDARD_JUDGING = "standard_judging"
    APPRECIATION_ONLY = "appreciation_only"

class EventStatus(enum.StrEnum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    PAST = "past"

class PrizeType(enum.StrEnum):
    GENERAL = "general"
    TRACK = "track"
    SPONSOR = "sponsor"
    TRACK_SPONSOR = "track_sponsor"

    @property
    def needs_track(self) -> bool:
        return self in (PrizeType.TRACK, PrizeType.TRACK_SPONSOR)

    @property
    def needs_sponsor(self) -> bool:
        return self in (PrizeType.SPONSOR, PrizeType.TRACK_SPONSOR)

class ScoreBasis(enum.StrEnum):
    OVERALL = "overall"
    CATEGORIES = "categories"
    NONE = "none"
