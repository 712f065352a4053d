from . import crud_user as user
from . import crud_tag as tag
from . import crud_client as client
from . import crud_project as project
from . import crud_task as task
from . import crud_invoice as invoice
from . import crud_expense as expense
from . import crud_notification as notification
from . import crud_activity as activity
from . import crud_time_entry as time_entry
from . import crud_file as file
from . import crud_company_settings as company_settings
from . import crud_wave_assignment as wave_assignment
from . import crud_dashboard as dashboard
from . import crud_statistics as statistics
