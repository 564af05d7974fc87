from typing import Sequence

from aiogram.filters.callback_data import CallbackData
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from infrastructure.database.models import Child, Semester


class MainMenu(CallbackData, prefix="menu"):
    menu: str


class SemesterMenu(CallbackData, prefix="semester"):
    semester_id: int
    action: str


class ScheduleView(CallbackData, prefix="view"):
    semester_id: int
    child_id: int = 0


def semesters_kb(semesters: Sequence[Semester], action: str = "open") -> InlineKeyboardMarkup:
    """
    Semester choice keyboard.

    :param semesters: Semesters to list
    :param action: Action sent with the chosen semester
    :return: Inline keyboard with one button per semester
    """
    buttons = [
        [
            InlineKeyboardButton(
                text=f"{'🔒' if semester.is_locked else '📅'} {semester.name}",
                callback_data=SemesterMenu(semester_id=semester.id, action=action).pack(),
            )
        ]
        for semester in semesters
    ]
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def semester_kb(semester: Semester) -> InlineKeyboardMarkup:
    """
    Manager menu of a semester.

    :param semester: Selected semester
    :return: Inline keyboard with the planning actions
    """

    def button(text: str, action: str) -> InlineKeyboardButton:
        return InlineKeyboardButton(
            text=text,
            callback_data=SemesterMenu(semester_id=semester.id, action=action).pack(),
        )

    buttons = [
        [button("🗓 Schedule", "schedule")],
        [button("👀 Preview document", "preview")],
    ]
    if not semester.is_locked:
        buttons.append([button("📤 Import document", "import")])
        buttons.append([button("✅ Submit planning", "submit")])
    buttons.append([button("📥 Imported document", "document")])
    buttons.append(
        [InlineKeyboardButton(text="↩️ Back", callback_data=MainMenu(menu="semesters").pack())]
    )
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def upload_back_kb(semester_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="↩️ Cancel",
                    callback_data=SemesterMenu(semester_id=semester_id, action="open").pack(),
                )
            ]
        ]
    )


def view_semesters_kb(semesters: Sequence[Semester], child_id: int = 0) -> InlineKeyboardMarkup:
    """
    Semester choice for staff and parent schedules.

    :param semesters: Semesters to list
    :param child_id: Child whose schedule is shown, 0 for the staff member's own
    :return: Inline keyboard with one button per semester
    """
    buttons = [
        [
            InlineKeyboardButton(
                text=f"📅 {semester.name}",
                callback_data=ScheduleView(semester_id=semester.id, child_id=child_id).pack(),
            )
        ]
        for semester in semesters
    ]
    return InlineKeyboardMarkup(inline_keyboard=buttons)


class ChildChoice(CallbackData, prefix="child"):
    child_id: int


def children_kb(children: Sequence[Child]) -> InlineKeyboardMarkup:
    buttons = [
        [
            InlineKeyboardButton(
                text=f"👶 {child.fullname}",
                callback_data=ChildChoice(child_id=child.id).pack(),
            )
        ]
        for child in children
    ]
    return InlineKeyboardMarkup(inline_keyboard=buttons)
