from fastapi import APIRouter

# Import endpoint modules
from rev.api.endpoints import auth
from rev.api.endpoints import login
from rev.api.endpoints import users
from rev.api.endpoints import clients
from rev.api.endpoints import projects
from rev.api.endpoints import tasks
from rev.api.endpoints import invoices
from rev.api.endpoints import expenses
from rev.api.endpoints import time_entries
from rev.api.endpoints import tags
from rev.api.endpoints import notifications
from rev.api.endpoints import activities
from rev.api.endpoints import files
from rev.api.endpoints import company_settings
from rev.api.endpoints import dashboard
from rev.api.endpoints import statistics
from rev.api.endpoints import chat
from rev.api.endpoints import wave
from rev.api.endpoints import webhooks

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(login.router, prefix="/login", tags=["Login"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(clients.router, prefix="/clients", tags=["Clients"])
api_router.include_router(projects.router, prefix="/projects", tags=["Projects"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["Invoices"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["Expenses"])
api_router.include_router(time_entries.router, prefix="/time-entries", tags=["Time Tracking"])
api_router.include_router(tags.router, prefix="/tags", tags=["Tags"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(activities.router, prefix="/activities", tags=["Activities"])
api_router.include_router(files.router, prefix="/files", tags=["Files"])
api_router.include_router(company_settings.router, prefix="/settings", tags=["Settings"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(statistics.router, prefix="/statistics", tags=["Statistics"])
api_router.include_router(chat.router, prefix="/chat", tags=["AI Chat"])
api_router.include_router(wave.router, prefix="/wave", tags=["Wave"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
