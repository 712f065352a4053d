# backend/rev/ai_tools/tool_definitions.py
from google.genai import types


# --- Tool: Find Client by Name ---
find_client_by_name_func = types.FunctionDeclaration(
    name="find_client_by_name",
    description="Looks up an existing client by name (case-insensitive). Use this before creating a client or an invoice for a named client.",
    parameters=types.Schema(
        type='OBJECT',
        properties={
            "name": types.Schema(type='STRING', description="The client's name as given by the user.")
        },
        required=["name"]
    )
)

# --- Tool: List Clients ---
list_clients_func = types.FunctionDeclaration(
    name="list_clients",
    description="Lists the user's clients, optionally filtered by a search term matched against name, email and company.",
    parameters=types.Schema(
        type='OBJECT',
        properties={
            "search": types.Schema(type='STRING', description="Optional search term."),
            "limit": types.Schema(type='INTEGER', description="Maximum number of clients to return. Defaults to 20.")
        }
    )
)

# --- Tool: Create Client ---
create_client_func = types.FunctionDeclaration(
    name="create_client",
    description="Creates a new client. Only use this once find_client_by_name confirmed the client does not exist.",
    parameters=types.Schema(
        type='OBJECT',
        properties={
            "name": types.Schema(type='STRING', description="Client name. Mandatory."),
            "email": types.Schema(type='STRING', description="Contact email. Optional, must be a valid email."),
            "phone": types.Schema(type='STRING', description="Phone number. Optional."),
            "company": types.Schema(type='STRING', description="Company the client works for. Optional."),
            "address": types.Schema(type='STRING', description="Postal address. Optional."),
            "notes": types.Schema(type='STRING', description="Free-form notes. Optional.")
        },
        required=["name"]
    )
)

# --- Tool: Create Expense ---
create_expense_func = types.FunctionDeclaration(
    name="create_expense",
    description="Records an expense. Amounts are in the user's currency.",
    parameters=types.Schema(
        type='OBJECT',
        properties={
            "description": types.Schema(type='STRING', description="What the money was spent on. Mandatory."),
            "amount": types.Schema(type='NUMBER', description="Amount spent, zero or positive. Mandatory."),
            "category": types.Schema(type='STRING', description="Category such as 'Software', 'Transport', 'Equipment'. Optional."),
            "date": types.Schema(type='STRING', description="Expense date as YYYY-MM-DD. Defaults to today."),
            "notes": types.Schema(type='STRING', description="Extra notes. Optional.")
        },
        required=["description", "amount"]
    )
)

# --- Tool: Create Invoice ---
create_invoice_func = types.FunctionDeclaration(
    name="create_invoice",
    description="Creates an invoice or a proforma for a client. Resolve the client with find_client_by_name first and pass its client_id.",
    parameters=types.Schema(
        type='OBJECT',
        properties={
            "client_id": types.Schema(type='STRING', description="UUID of the client being billed. Optional but strongly preferred."),
            "type": types.Schema(type='STRING', description="'INVOICE' or 'PROFORMA'. Defaults to 'INVOICE'."),
            "currency": types.Schema(type='STRING', description="3-letter currency code. Defaults to the user's currency."),
            "due_date": types.Schema(type='STRING', description="Due date as YYYY-MM-DD. Optional."),
            "notes": types.Schema(type='STRING', description="Payment terms or other notes. Optional."),
            "items": types.Schema(
                type='ARRAY',
                description="Invoice line items. At least one is required.",
                items=types.Schema(
                    type='OBJECT',
                    properties={
                        "description": types.Schema(type='STRING', description="What is billed."),
                        "quantity": types.Schema(type='NUMBER', description="Quantity, greater than zero. Defaults to 1."),
                        "unit_price": types.Schema(type='NUMBER', description="Price per unit.")
                    },
                    required=["description", "unit_price"]
                )
            )
        },
        required=["items"]
    )
)

# --- Tool: Dashboard Summary ---
get_dashboard_summary_func = types.FunctionDeclaration(
    name="get_dashboard_summary",
    description="Returns revenue, expenses, profit, pending amounts and counts of clients, projects, invoices and tasks.",
    parameters=types.Schema(
        type='OBJECT',
        properties={
            "start_date": types.Schema(type='STRING', description="Start of the period as YYYY-MM-DD. Optional."),
            "end_date": types.Schema(type='STRING', description="End of the period as YYYY-MM-DD. Optional.")
        }
    )
)

# --- Tool: Ask Clarifying Question ---
ask_clarifying_question_func = types.FunctionDeclaration(
    name="ask_clarifying_question",
    description="Asks the user for missing information needed to complete a task. Use this instead of guessing mandatory values.",
    parameters=types.Schema(
        type='OBJECT',
        properties={
            "question_to_user": types.Schema(type='STRING', description="The clear and specific question to ask the user.")
        },
        required=["question_to_user"]
    )
)


rev_assistant_tool = types.Tool(
    function_declarations=[
        find_client_by_name_func,
        list_clients_func,
        create_client_func,
        create_expense_func,
        create_invoice_func,
        get_dashboard_summary_func,
        ask_clarifying_question_func,
    ]
)

# List of all tools to be passed to the Gemini model
ALL_TOOLS = [rev_assistant_tool]
