from .user import UserRegister, UserCreate, UserUpdate, UserOut, Token, TokenPayload, WaveSettingsUpdate, WebhookSecretOut, SmtpStatus
from .tag import Tag, TagCreate, TagUpdate, TagSummary, TagUsage
from .client import Client, ClientCreate, ClientUpdate, ClientSummary
from .project import Project, ProjectCreate, ProjectUpdate, ProjectSummary, ProjectBudget, ProjectTypeEnum, ProjectStatusEnum
from .task import Task, TaskCreate, TaskUpdate, TaskStatusEnum, TaskPriorityEnum
from .invoice import Invoice, InvoiceCreate, InvoiceUpdate, InvoiceSummary, InvoiceItem, InvoiceItemCreate, InvoiceConvert, InvoiceSendResult, PaymentLinkOut, InvoiceTypeEnum, InvoiceStatusEnum
from .invoice import PartialConvertRequest, ConversionStatus, PartialConversionResult, AdvancePaymentCreate, AdvancePaymentResult, PublicInvoice, PublicMarkPaid, PublicMarkPaidResult
from .expense import Expense, ExpenseCreate, ExpenseUpdate, ExpenseTypeEnum, SubscriptionPeriodEnum
from .notification import Notification, NotificationCreate, NotificationList, MarkAllReadResult, NotificationTypeEnum
from .activity import Activity, ActivityCreate, ActivityTypeEnum
from .time_entry import TimeEntry, TimeEntryCreate, TimeEntryUpdate, TimeEntryList, TimeSummary
from .file import File, FileUpdate, FileCategoryEnum
from .company_settings import CompanySettings, CompanySettingsUpdate
from .dashboard import DashboardStats, DashboardCounts, DashboardFilters
from .statistics import StatisticsReport, MonthlyStat, ProjectProfitability, StatisticsTotals
from .wave import (
    CheckoutSessionCreate, CheckoutSessionResult, PayoutCreate, PayoutResult, PayoutBatchCreate,
    TransactionAssign, WaveTransactionAssignment, TransactionList, WaveAssignmentTypeEnum, PayoutTypeEnum,
)
