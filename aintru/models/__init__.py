# Import ALL models once so they register on Base.metadata
from .user import User
from .waitlist import Waitlist
from .candidate_profile import CandidateProfile
from .interview import Interview, InterviewSession, InterviewReport
from .exam import ExamInterview
from .job import JobInterview

__all__ = [
    "User",
    "Waitlist",
    "CandidateProfile",
    "Interview", "InterviewSession", "InterviewReport",
    "ExamInterview",
    "JobInterview",
]
