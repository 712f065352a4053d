from .tag import Tag, project_tags, client_tags, task_tags, file_tags
from .user import User
from .client import Client
from .project import Project
from .task import Task
from .invoice import Invoice, InvoiceItem
from .expense import Expense
from .notification import Notification
from .activity import Activity
from .time_entry import TimeEntry
from .file import File
from .wave_assignment import WaveTransactionAssignment
from .company_settings import CompanySettings
