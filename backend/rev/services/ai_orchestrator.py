# backend/rev/services/ai_orchestrator.py
import logging
from datetime import datetime, date
from typing import List, Dict, Any, Optional, Tuple
import uuid

from google import genai
from google.genai import types
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from rev.core.config import settings
from rev import crud, schemas, models
from rev.ai_tools.tool_definitions import ALL_TOOLS

logger = logging.getLogger(__name__)

MAX_TOOL_ITERATIONS = 5

# Initialize the Gemini Client
gemini_sdk_client: Optional[genai.Client] = None
if settings.GOOGLE_GEMINI_API_KEY:
    try:
        gemini_sdk_client = genai.Client(api_key=settings.GOOGLE_GEMINI_API_KEY)
        logger.info("Gemini SDK client initialized successfully with google-genai.")
    except Exception as e:
        logger.error(f"Failed to initialize Gemini SDK client with google-genai: {e}", exc_info=True)
        gemini_sdk_client = None


# Tool results go back to Gemini as JSON, so UUIDs and datetimes become strings
def make_model_dump_json_serializable(model_data: Any) -> Any:
    if isinstance(model_data, dict):
        return {key: make_model_dump_json_serializable(value) for key, value in model_data.items()}
    if isinstance(model_data, list):
        return [make_model_dump_json_serializable(item) for item in model_data]
    if isinstance(model_data, uuid.UUID):
        return str(model_data)
    if isinstance(model_data, (datetime, date)):
        return model_data.isoformat()
    if hasattr(model_data, "value") and isinstance(getattr(model_data, "value"), str):
        return model_data.value
    return model_data


def _parse_day(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


# --- Tool Execution Mappers ---
async def execute_find_client_by_name(db: AsyncSession, user: models.User, name: str) -> Dict[str, Any]:
    client = await crud.client.get_client_by_name(db, name=name, user_id=user.id)
    if client:
        client_dict = schemas.Client.model_validate(client).model_dump()
        return {"status": "success", "client_id": str(client.id), "data": make_model_dump_json_serializable(client_dict)}
    return {"status": "not_found", "message": f"Client '{name}' not found."}


async def execute_list_clients(
    db: AsyncSession, user: models.User, search: Optional[str] = None, limit: int = 20
) -> Dict[str, Any]:
    clients = await crud.client.get_clients(db, user_id=user.id, search=search, limit=int(limit or 20))
    data = [schemas.ClientSummary.model_validate(c).model_dump() for c in clients]
    return {"status": "success", "count": len(data), "data": make_model_dump_json_serializable(data)}


async def execute_create_client(db: AsyncSession, user: models.User, **kwargs) -> Dict[str, Any]:
    if not kwargs.get("name"):
        return {"status": "error", "message": "Client name is required to create a client."}

    existing_client = await crud.client.get_client_by_name(db, name=kwargs["name"], user_id=user.id)
    if existing_client:
        existing_dict = schemas.Client.model_validate(existing_client).model_dump()
        return {"status": "already_exists", "client_id": str(existing_client.id), "data": make_model_dump_json_serializable(existing_dict)}

    try:
        client_in = schemas.ClientCreate(**{k: v for k, v in kwargs.items() if v is not None})
    except ValidationError as e:
        return {"status": "error", "message": f"Invalid client data: {e.errors()[0]['msg']}"}

    new_client = await crud.client.create_client(db, client_in=client_in, user_id=user.id)
    await crud.activity.record(
        db, user_id=user.id, activity_type=schemas.ActivityTypeEnum.CLIENT_ADDED,
        description=f"Client '{new_client.name}' added", client_id=new_client.id,
    )
    new_dict = schemas.Client.model_validate(new_client).model_dump()
    return {"status": "success", "client_id": str(new_client.id), "data": make_model_dump_json_serializable(new_dict)}


async def execute_create_expense(db: AsyncSession, user: models.User, **kwargs) -> Dict[str, Any]:
    try:
        expense_args = {k: v for k, v in kwargs.items() if v is not None}
        if "date" in expense_args:
            expense_args["date"] = _parse_day(expense_args["date"])
        expense_in = schemas.ExpenseCreate(**expense_args)
    except (ValidationError, ValueError) as e:
        return {"status": "error", "message": f"Invalid expense data: {e}"}

    expense = await crud.expense.create_expense(db, expense_in=expense_in, user_id=user.id)
    await crud.activity.record(
        db, user_id=user.id, activity_type=schemas.ActivityTypeEnum.EXPENSE_CREATED,
        description=f"Expense '{expense.description}' recorded", project_id=expense.project_id,
    )
    expense_dict = schemas.Expense.model_validate(expense).model_dump()
    return {"status": "success", "expense_id": str(expense.id), "data": make_model_dump_json_serializable(expense_dict)}


async def execute_create_invoice(db: AsyncSession, user: models.User, **llm_provided_args) -> Dict[str, Any]:
    client = None
    if llm_provided_args.get("client_id"):
        try:
            client_uuid = uuid.UUID(str(llm_provided_args["client_id"]))
        except ValueError:
            return {"status": "error", "message": f"Invalid client_id format: {llm_provided_args['client_id']}"}
        client = await crud.client.get_client(db, client_id=client_uuid, user_id=user.id)
        if client is None:
            return {"status": "not_found", "message": f"Client with ID '{client_uuid}' not found."}

    try:
        invoice_in = schemas.InvoiceCreate(
            type=str(llm_provided_args.get("type") or "INVOICE").upper(),
            currency=str(llm_provided_args.get("currency") or user.currency or "XOF").upper(),
            due_date=_parse_day(llm_provided_args.get("due_date")),
            notes=llm_provided_args.get("notes"),
            items=[schemas.InvoiceItemCreate(**item) for item in llm_provided_args.get("items") or []],
        )
    except (ValidationError, ValueError, TypeError) as e:
        return {"status": "error", "message": f"Invalid data format for invoice creation: {e}"}
    if not invoice_in.items:
        return {"status": "error", "message": "At least one line item is required."}

    invoice = await crud.invoice.create_invoice_with_items(db, invoice_in=invoice_in, owner_id=user.id, client=client)
    await crud.activity.record(
        db, user_id=user.id, activity_type=schemas.ActivityTypeEnum.INVOICE_CREATED,
        description=f"Invoice {invoice.invoice_number} created", invoice_id=invoice.id, client_id=invoice.client_id,
    )
    invoice_dict = schemas.Invoice.model_validate(invoice).model_dump()
    return {"status": "success", "invoice_id": str(invoice.id), "data": make_model_dump_json_serializable(invoice_dict)}


async def execute_get_dashboard_summary(
    db: AsyncSession, user: models.User, start_date: Optional[str] = None, end_date: Optional[str] = None
) -> Dict[str, Any]:
    try:
        start, end = _parse_day(start_date), _parse_day(end_date)
    except ValueError as e:
        return {"status": "error", "message": f"Invalid date: {e}"}
    stats = await crud.dashboard.get_dashboard_stats(
        db, user_id=user.id, currency=user.currency, start_date=start, end_date=end
    )
    summary = {key: value for key, value in stats.items() if key not in ("recent_activities", "upcoming_deadlines")}
    return {"status": "success", "data": make_model_dump_json_serializable(summary)}


TOOL_EXECUTORS = {
    "find_client_by_name": execute_find_client_by_name,
    "list_clients": execute_list_clients,
    "create_client": execute_create_client,
    "create_expense": execute_create_expense,
    "create_invoice": execute_create_invoice,
    "get_dashboard_summary": execute_get_dashboard_summary,
}


def build_sdk_history(conversation_history: List[Dict[str, Any]]) -> List[types.Content]:
    """
    Convert our stored history into Gemini contents. Function responses are
    left out since chats.create() does not accept a "tool" role.
    """
    sdk_history: List[types.Content] = []
    for entry in conversation_history:
        role = entry.get("role")
        parts_data_list = entry.get("parts", [])
        if not isinstance(parts_data_list, list):
            parts_data_list = [parts_data_list]

        parts: List[types.Part] = []
        if role in ("user", "model"):
            for p_item in parts_data_list:
                text_content = p_item if isinstance(p_item, str) else p_item.get("text", "")
                if text_content:
                    parts.append(types.Part.from_text(text=text_content))
        elif role == "function_call_request":
            for p_item in parts_data_list:
                if isinstance(p_item, dict) and "name" in p_item and "args" in p_item:
                    parts.append(types.Part.from_function_call(name=p_item["name"], args=p_item["args"]))
            role = "model"
        else:
            continue

        if parts:
            sdk_history.append(types.Content(role=role, parts=parts))
    return sdk_history


def _append_model_text(history: List[Dict[str, Any]], text: str) -> None:
    if not any(h.get("role") == "model" and h.get("parts") == [text] for h in history[-2:]):
        history.append({"role": "model", "parts": [text]})


# --- Orchestration Logic ---
async def process_user_message(
    db: AsyncSession,
    user_message: str,
    conversation_history: List[Dict[str, Any]],
    current_user: models.User,
) -> Tuple[str, List[Dict[str, Any]], Optional[str]]:

    if not gemini_sdk_client:
        return "The AI assistant is currently unavailable. Please try again later.", conversation_history, None

    sdk_history = build_sdk_history(conversation_history)

    system_instruction_text = f"""
    You are "Rev", the assistant of a freelance business management app.
    You help '{current_user.full_name or current_user.email}' manage clients, invoices and expenses
    with the available tools. Amounts default to the user's currency ({current_user.currency}).

    Workflow:
    1. Understand the user's goal.
    2. Check existing data first: use 'find_client_by_name' before creating a client or billing one.
    3. If mandatory information is missing, use 'ask_clarifying_question'. Never invent amounts.
    4. Dates are 'YYYY-MM-DD' in tool calls.
    5. After a tool runs, summarize the result for the user in one or two sentences.

If a tool errors, tell the user and ask for corrected information. Be concise and answer in the user's language.
"""

    try:
        chat_session = gemini_sdk_client.aio.chats.create(
            model=f"models/{settings.GEMINI_MODEL_NAME}",
            history=sdk_history
        )
        current_generation_config = types.GenerateContentConfig(
            tools=ALL_TOOLS,
            system_instruction=system_instruction_text,
            temperature=0.7,
        )
        logger.debug(f"Sending to Gemini. History length: {len(sdk_history)}")
        response = await chat_session.send_message(user_message, config=current_generation_config)
    except Exception as e:
        logger.error(f"Error during Gemini chat session or send_message: {e}", exc_info=True)
        return "Sorry, I encountered an error trying to process your request with the AI service.", conversation_history, None

    ai_response_text = ""
    updated_history = list(conversation_history)
    updated_history.append({"role": "user", "parts": [user_message]})

    current_response = response
    tool_iterations = 0

    while tool_iterations < MAX_TOOL_ITERATIONS:
        tool_iterations += 1

        if not current_response or not current_response.function_calls:
            ai_response_text = (current_response.text if current_response else None) or \
                "I received an empty response from the AI."
            _append_model_text(updated_history, ai_response_text)
            break

        function_call = current_response.function_calls[0]
        tool_name = function_call.name
        tool_args = dict(function_call.args or {})
        logger.info(f"LLM wants to call tool: {tool_name}")

        updated_history.append({
            "role": "function_call_request",
            "parts": [{"name": fc.name, "args": dict(fc.args or {})} for fc in current_response.function_calls]
        })

        if tool_name == "ask_clarifying_question":
            follow_up_question = tool_args.get("question_to_user", "I need more information. Can you clarify?")
            _append_model_text(updated_history, follow_up_question)
            return follow_up_question, updated_history, follow_up_question

        executor = TOOL_EXECUTORS.get(tool_name)
        if executor is None:
            ai_response_text = f"Error: Unknown tool '{tool_name}' requested by the AI."
            _append_model_text(updated_history, ai_response_text)
            return ai_response_text, updated_history, None

        try:
            tool_result = await executor(db=db, user=current_user, **tool_args)
        except TypeError as e:
            tool_result = {"status": "error", "message": f"Invalid arguments for {tool_name}: {e}"}
        except Exception as exec_e:
            logger.error(f"Error executing tool {tool_name}: {exec_e}", exc_info=True)
            await db.rollback()
            tool_result = {"status": "error", "message": f"System error executing tool {tool_name}: {exec_e}"}

        updated_history.append({
            "role": "function_call_response",
            "parts": [{"name": tool_name, "response": tool_result}]
        })

        try:
            current_response = await chat_session.send_message(
                types.Part.from_function_response(name=tool_name, response=tool_result),
                config=current_generation_config
            )
        except Exception as send_e:
            logger.error(f"Error sending tool response to Gemini: {send_e}", exc_info=True)
            ai_response_text = "Sorry, I encountered an error after processing the tool result."
            _append_model_text(updated_history, ai_response_text)
            return ai_response_text, updated_history, None

    if not ai_response_text:
        logger.warning("Reached max tool iterations without a final text response.")
        ai_response_text = "I got into a bit of a processing loop. Could you please simplify your request or try again?"
        _append_model_text(updated_history, ai_response_text)

    return ai_response_text, updated_history, None
