"""
Budget assistant over SMS.

Inbound texts are matched to a user by phone number and answered: ``help``
lists the commands, ``budget``/``balance`` report this month's budget lines,
and anything that looks like an amount is recorded as a transaction in the
user's default budget account.
"""
import re
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.logging_config import get_logger
from budget_api.models import (
    Budget,
    BudgetCategory,
    Category,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)
from budget_api.utils.date_utils import month_bounds

logger = get_logger(__name__)

UNKNOWN_NUMBER = (
    "Sorry, I don't recognize this phone number. "
    "Please make sure your phone number is added to your account profile."
)
NO_ACCOUNT = "You need to set up a budget account first. Please log into your account and create a budget."
RECORD_FAILED = "Sorry, I couldn't record that transaction. Please try again."
QUERY_FAILED = "Sorry, I couldn't retrieve budget information. Please try again."
NO_BUDGETS = "No budgets set up for this month. Please log into your account to create budget categories."

UNRECOGNIZED = """I didn't understand that command. Send "help" for available commands.

Quick examples:
• Spent $25 on groceries
• Budget groceries
• Income $500 freelance work"""

PARSE_FAILED = """I couldn't parse that transaction. Please use formats like:
• Spent $25 on groceries at Walmart
• Paid $50 for gas at Shell yesterday
• Income $500 freelance work 12/15
• Earned $100 side hustle on Monday"""

HELP_MESSAGE = """SMS Budget Assistant Help

RECORD TRANSACTIONS:
• "Spent $25 on groceries at Walmart"
• "Paid $50 for gas at Shell yesterday"
• "Income $500 freelance work 12/15"
• "Bought $15 coffee at Starbucks"
• "$30 lunch at McDonald's on Monday"

CHECK BUDGETS:
• "Budget groceries" - specific category
• "Budget" - all categories summary
• "Balance gas" - check gas category

TIPS:
• Include merchant: "at [store name]"
• Add dates: "yesterday", "Monday", "12/15", "3 days ago"
• Use keywords: spent, paid, bought, income, earned
• Categories are auto-created if needed
• All amounts in USD

DATE FORMATS:
• Relative: yesterday, today, Monday, 3 days ago
• Absolute: 12/15, 12/15/24, 12/15/2024

Questions? Reply "help" anytime!"""

HELP_COMMANDS = ("help", "?")
QUERY_WORDS = ("budget", "balance")
TRANSACTION_WORDS = ("spent", "expense", "paid", "bought", "income", "earned")
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

ANY_NUMBER = re.compile(r"\d+(\.\d{2})?")
INCOME_WORDS = re.compile(r"\b(income|earned|received|got|deposit)\b", re.I)
AMOUNT = re.compile(r"\$?(\d+(?:\.\d{2})?)")
DATE_PATTERNS = [
    re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{2,4})\b"),
    re.compile(r"\b(\d{1,2})/(\d{1,2})\b"),
    re.compile(r"\b(yesterday|today|tomorrow)\b", re.I),
    re.compile(r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b", re.I),
    re.compile(r"\b(\d+)\s+days?\s+ago\b", re.I),
]
MERCHANT_PATTERNS = [
    re.compile(r"\b(?:at|from)\s+([A-Za-z][A-Za-z0-9\s&'-]+?)(?:\s+(?:for|on|in)\s|\s*$)", re.I),
    re.compile(
        r"\b(?:merchant|store|shop|restaurant|cafe|gas|grocery)\s+([A-Za-z][A-Za-z0-9\s&'-]+?)(?:\s+(?:for|on|in)\s|\s*$)",
        re.I,
    ),
]
LEADING_KEYWORD = re.compile(
    r"^(spent|paid|bought|expense|income|earned|received|got|deposit|on|for|at|from)\s*", re.I
)
CATEGORY_PHRASE = re.compile(r"\b(?:on|for|in)\s+(.+?)(?:\s+(?:at|from)\s|\s*$)", re.I)
CATEGORY_TAIL = re.compile(r"\b(?:on|for|in)\s+.+$", re.I)


@dataclass
class ParsedSms:
    amount: float
    description: str
    type: TransactionType
    category: Optional[str] = None
    merchant: Optional[str] = None
    date: Optional[date] = None


@dataclass
class BudgetLine:
    name: str
    allocated: float
    spent: float

    @property
    def remaining(self) -> float:
        return self.allocated - self.spent


def format_phone_number(phone_number: str) -> str:
    """Normalize to E.164: ten digits are a US number, longer ones just get a ``+``."""
    digits = re.sub(r"\D", "", phone_number)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) > 10 and not phone_number.startswith("+"):
        return f"+{digits}"
    return phone_number


def _calendar_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_sms_date(text: str, today: date) -> Optional[date]:
    """
    Resolve a date phrase from a text message.

    Handles yesterday/today/tomorrow, "N days ago", weekday names (the next
    occurrence, today included), MM/DD/YY(YY) and MM/DD in the current year.
    """
    lowered = text.lower()
    if "yesterday" in lowered:
        return today - timedelta(days=1)
    if "today" in lowered:
        return today
    if "tomorrow" in lowered:
        return today + timedelta(days=1)

    days_ago = re.search(r"(\d+)\s+days?\s+ago", lowered)
    if days_ago:
        return today - timedelta(days=int(days_ago.group(1)))

    if lowered in WEEKDAYS:
        return today + timedelta(days=(WEEKDAYS.index(lowered) - today.weekday()) % 7)

    full = re.search(r"(\d{1,2})/(\d{1,2})/(\d{2,4})", lowered)
    if full:
        month, day, year = (int(part) for part in full.groups())
        if year < 100:
            year += 2000 if year < 50 else 1900
        return _calendar_date(year, month, day)

    short = re.search(r"(\d{1,2})/(\d{1,2})", lowered)
    if short:
        month, day = (int(part) for part in short.groups())
        return _calendar_date(today.year, month, day)
    return None


def parse_transaction_message(message: str, today: Optional[date] = None) -> Optional[ParsedSms]:
    """
    Pull amount, type, date, merchant and category out of free-form text.

    Returns None when no positive amount is present.
    """
    today = today or date.today()
    text = message.strip()
    transaction_type = TransactionType.INCOME if INCOME_WORDS.search(text) else TransactionType.EXPENSE

    amount_match = AMOUNT.search(text)
    if not amount_match:
        return None
    amount = float(amount_match.group(1))
    if amount <= 0:
        return None

    working = text
    transaction_date = None
    for pattern in DATE_PATTERNS:
        found = pattern.search(working)
        if found:
            transaction_date = parse_sms_date(found.group(0), today)
            working = pattern.sub("", working, count=1).strip()
            break

    merchant = None
    for pattern in MERCHANT_PATTERNS:
        found = pattern.search(working)
        if found:
            merchant = found.group(1).strip()
            working = pattern.sub(" ", working, count=1).strip()
            break

    description = AMOUNT.sub("", working, count=1).strip()
    description = LEADING_KEYWORD.sub("", description).strip()

    category = ""
    category_match = CATEGORY_PHRASE.search(description)
    if category_match:
        category = category_match.group(1).strip()
        description = CATEGORY_TAIL.sub("", description).strip()
    elif description and not merchant:
        words = description.split(" ")
        if len(words) <= 2:
            category, description = description, ""
        else:
            category = " ".join(words[-2:])
            description = " ".join(words[:-2]).strip()

    return ParsedSms(
        amount=amount,
        description=description or f"{transaction_type.value} via SMS",
        type=transaction_type,
        category=category or None,
        merchant=merchant or None,
        date=transaction_date,
    )


def format_transaction_reply(parsed: ParsedSms, line: Optional[BudgetLine], today: date) -> str:
    label = "Expense" if parsed.type == TransactionType.EXPENSE else "Income"
    reply = f"✅ {label} recorded: ${parsed.amount:.2f}"
    if parsed.description:
        reply += f" - {parsed.description}"
    if parsed.merchant:
        reply += f" at {parsed.merchant}"
    if parsed.category:
        reply += f" ({parsed.category})"
    if parsed.date and parsed.date != today:
        reply += f" on {parsed.date.month}/{parsed.date.day}/{parsed.date.year}"

    if line is not None and parsed.type == TransactionType.EXPENSE:
        if line.remaining > 0:
            reply += f"\n\n💰 {parsed.category} budget remaining: ${line.remaining:.2f}"
        else:
            reply += f"\n\n⚠️ {parsed.category} budget exceeded by ${abs(line.remaining):.2f}"
    return reply


def format_category_budget(line: BudgetLine) -> str:
    over = " (over budget)" if line.remaining < 0 else ""
    return (
        f"💰 {line.name} Budget:\n"
        f"Allocated: ${line.allocated:.2f}\n"
        f"Spent: ${line.spent:.2f}\n"
        f"Remaining: ${line.remaining:.2f}{over}"
    )


def format_budget_summary(lines: List[BudgetLine], year: int, month: int) -> str:
    rows = "\n".join(f"{line.name}: ${line.remaining:.2f} remaining" for line in lines)
    return f"📊 Budget Summary ({month}/{year}):\n\n{rows}"


async def find_user_by_phone(db: AsyncSession, phone_number: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.phone_number == phone_number).limit(1))
    return result.scalars().first()


async def find_or_create_category(db: AsyncSession, account_id: str, name: str) -> Category:
    result = await db.execute(
        select(Category).where(
            Category.budget_account_id == account_id,
            func.lower(Category.name) == name.lower(),
        )
    )
    category = result.scalars().first()
    if category is None:
        category = Category(id=str(uuid.uuid4()), budget_account_id=account_id, name=name)
        db.add(category)
        await db.flush()
    return category


async def get_budget_lines(
    db: AsyncSession,
    account_id: str,
    year: int,
    month: int,
    category_id: Optional[str] = None,
    category_name: Optional[str] = None,
) -> List[BudgetLine]:
    """The month's budget categories with expenses spent against each, by name."""
    start, end = month_bounds(year, month)
    spent = (
        select(Transaction.category_id, func.sum(Transaction.amount).label("spent"))
        .where(
            Transaction.budget_account_id == account_id,
            Transaction.type == TransactionType.EXPENSE,
            Transaction.date >= start,
            Transaction.date <= end,
        )
        .group_by(Transaction.category_id)
        .subquery()
    )
    stmt = (
        select(Category.name, BudgetCategory.amount, func.coalesce(spent.c.spent, 0))
        .select_from(BudgetCategory)
        .join(Category, BudgetCategory.category_id == Category.id)
        .join(Budget, BudgetCategory.budget_id == Budget.id)
        .outerjoin(spent, spent.c.category_id == Category.id)
        .where(Budget.budget_account_id == account_id, Budget.year == year, Budget.month == month)
        .order_by(Category.name)
    )
    if category_id:
        stmt = stmt.where(Category.id == category_id)
    if category_name:
        stmt = stmt.where(func.lower(Category.name) == category_name.lower())

    result = await db.execute(stmt)
    return [
        BudgetLine(name=name, allocated=float(amount), spent=float(spent_amount))
        for name, amount, spent_amount in result.all()
    ]


async def _available_categories(db: AsyncSession, account_id: str) -> str:
    result = await db.execute(
        select(Category.name).where(Category.budget_account_id == account_id).order_by(Category.name).limit(10)
    )
    return ", ".join(result.scalars().all()) or "none"


async def handle_budget_query(db: AsyncSession, user: User, text: str, today: date) -> str:
    account_id = user.default_budget_account_id
    if not account_id:
        return NO_ACCOUNT

    words = text.lower().split(" ")
    index = next((i for i, word in enumerate(words) if word in QUERY_WORDS), None)
    category_name = None
    if index is not None and index + 1 < len(words) and words[index + 1]:
        category_name = words[index + 1]

    try:
        lines = await get_budget_lines(db, account_id, today.year, today.month, category_name=category_name)
        if category_name and not lines:
            available = await _available_categories(db, account_id)
            return f'No budget found for "{category_name}" this month. Available categories: {available}'
    except SQLAlchemyError as e:
        logger.error(f"Error querying budget over SMS for user {user.id}: {e}")
        return QUERY_FAILED

    if category_name:
        return format_category_budget(lines[0])
    if not lines:
        return NO_BUDGETS
    return format_budget_summary(lines, today.year, today.month)


async def handle_transaction_command(db: AsyncSession, user: User, message: str, today: date) -> str:
    account_id = user.default_budget_account_id
    if not account_id:
        return NO_ACCOUNT

    parsed = parse_transaction_message(message, today)
    if parsed is None:
        return PARSE_FAILED

    try:
        category = await find_or_create_category(db, account_id, parsed.category) if parsed.category else None
        db.add(Transaction(
            id=str(uuid.uuid4()),
            budget_account_id=account_id,
            category_id=category.id if category else None,
            created_by_user_id=user.id,
            amount=parsed.amount,
            description=parsed.description,
            merchant_name=parsed.merchant,
            type=parsed.type,
            status=TransactionStatus.COMPLETED,
            date=parsed.date or today,
        ))
        await db.commit()

        lines = await get_budget_lines(db, account_id, today.year, today.month, category_id=category.id) if category else []
    except SQLAlchemyError as e:
        logger.error(f"Error recording SMS transaction for user {user.id}: {e}")
        await db.rollback()
        return RECORD_FAILED

    logger.info(f"Recorded SMS {parsed.type.value} of {parsed.amount:.2f} for user {user.id}")
    return format_transaction_reply(parsed, lines[0] if lines else None, today)


async def process_sms_message(
    db: AsyncSession, from_number: str, body: str, today: Optional[date] = None
) -> str:
    """Route one inbound text to the matching command; returns the reply text."""
    today = today or date.today()
    user = await find_user_by_phone(db, format_phone_number(from_number))
    if user is None:
        logger.info(f"SMS from unknown number {from_number}")
        return UNKNOWN_NUMBER

    text = body.strip().lower()
    if text in HELP_COMMANDS:
        return HELP_MESSAGE
    if text.startswith(QUERY_WORDS):
        return await handle_budget_query(db, user, text, today)
    if text.startswith(TRANSACTION_WORDS) or "$" in text or ANY_NUMBER.search(text):
        return await handle_transaction_command(db, user, body, today)
    return UNRECOGNIZED
