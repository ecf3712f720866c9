"""Transaction categories offered for expenses and income."""

from typing import Literal

TransactionKind = Literal["income", "expense"]

NO_SPEND = "No Spend"

EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Food (อาหาร)",
    "Groceries (ของใช้ในบ้าน)",
    "Coffee (กาแฟ)",
    "Transport (เดินทาง)",
    "Housing (ที่อยู่อาศัย)",
    "Bills (บิล/สาธารณูปโภค)",
    "Subscription (สมาชิก/ซับสคริปชัน)",
    "Health (สุขภาพ)",
    "Education (การศึกษา)",
    "Travel (ท่องเที่ยว)",
    "Family (ครอบครัว/ลูก)",
    "Pet (สัตว์เลี้ยง)",
    "Insurance (ประกัน)",
    "Tax (ภาษี)",
    "Shopping (ช้อปปิ้ง)",
    "Beauty (ความงาม)",
    "Entertainment (บันเทิง)",
    "Business (งาน/ธุรกิจ)",
    "Donation (บริจาค)",
    "Gift (ของขวัญ)",
    "Luxury (ฟุ่มเฟือย)",
    "Saving (ออม)",
    "Investment (ลงทุน)",
    "Debt (หนี้)",
    NO_SPEND,
    "Other (อื่นๆ)",
)

INCOME_CATEGORIES: tuple[str, ...] = (
    "Salary (เงินเดือน)",
    "Bonus (โบนัส)",
    "Freelance (ฟรีแลนซ์)",
    "Business Income (รายได้ธุรกิจ)",
    "Commission (คอมมิชชั่น)",
    "Interest/Dividend (ดอกเบี้ย/ปันผล)",
    "Rental Income (ค่าเช่า)",
    "Gift/Support (ของขวัญ/สนับสนุน)",
    "Refund/Cashback (คืนเงิน/แคชแบ็ก)",
    "Sale of Asset (ขายทรัพย์สิน)",
    "Other (อื่นๆ)",
)


def get_categories_by_type(tx_type: TransactionKind) -> list[str]:
    """Return the category list for a transaction type."""
    return list(INCOME_CATEGORIES if tx_type == "income" else EXPENSE_CATEGORIES)


def get_ai_allowed_categories(tx_type: TransactionKind) -> list[str]:
    """Categories a classifier may choose; "No Spend" is a manual-only marker."""
    return [c for c in get_categories_by_type(tx_type) if c != NO_SPEND]
