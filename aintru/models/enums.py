from enum import Enum

class AuthProvider(str, Enum):
    LOCAL = "local"
    GOOGLE = "google"
    GITHUB = "github"

class UserType(str, Enum):
    STUDENT = "student"
    PROFESSIONAL = "professional"

class WaitlistStatus(str, Enum):
    WAITING = "waiting"
    CONTACTED = "contacted"
    CONVERTED = "converted"

class InterviewMode(str, Enum):
    VOICE = "voice"
    VIDEO = "video"

class InterviewStatus(str, Enum):
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class ReadinessLevel(str, Enum):
    NOT_READY = "Not Ready"
    NEEDS_IMPROVEMENT = "Needs Improvement"
    READY = "Ready"
    WELL_PREPARED = "Well Prepared"
    EXCELLENT = "Excellent"
