from .attendance import Attendance
from .plus_one_guest import PlusOneGuest
from .registration import Registration

__all__ = ['Attendance', 'PlusOneGuest', 'Registration']
