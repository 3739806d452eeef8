from .account import Account, normalize_email
from .cohort import Assignment, Cohort, MentoringSession
from .contact import ContactMessage
from .registration import Application, MentorApplication, StudentApplication

__all__ = [
    'Account',
    'normalize_email',
    'Application',
    'StudentApplication',
    'MentorApplication',
    'Cohort',
    'Assignment',
    'MentoringSession',
    'ContactMessage',
]
