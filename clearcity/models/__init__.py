# Importing the models registers every table on Base.metadata.
from clearcity.models.user import User, UserRole
from clearcity.models.report import Report, ReportStatus
from clearcity.models.achievement import UserAchievement
