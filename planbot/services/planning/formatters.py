"""
Planning formatting functionality.
"""

import html
from collections import defaultdict
from datetime import date
from typing import Dict, List, Sequence

from infrastructure.database.models import EntryChild, ScheduleEntry

from .constants import WEEKDAY_NAMES
from .models import ProjectedEntry, ScheduleEntryView, TransferredChild


def entry_view(entry: ScheduleEntry) -> ScheduleEntryView:
    """Builds the read model of a persisted entry"""
    return ScheduleEntryView(
        id=entry.id,
        staff_id=entry.staff_id,
        staff_name=entry.staff.fullname if entry.staff else str(entry.staff_id),
        day_of_week=entry.day_of_week,
        start_time=entry.start_time,
        end_time=entry.end_time,
        activity=entry.activity,
        children=tuple(sorted(link.child.fullname for link in entry.entry_children)),
    )


def transferred_child(link: EntryChild) -> TransferredChild:
    return TransferredChild(
        child_id=link.child_id,
        child_name=link.child.fullname,
        current_entry_id=link.entry_id,
        current_activity=link.entry.activity,
        current_staff=link.entry.staff.fullname if link.entry.staff else "Unknown staff",
    )


class ScheduleFormatter:
    """Formatter for planning messages (Telegram HTML)"""

    @staticmethod
    def _day_title(day: date) -> str:
        weekday = WEEKDAY_NAMES.get(day.isoweekday(), day.strftime("%A"))
        return f"<b>{weekday} {day:%d.%m.%Y}</b>"

    @staticmethod
    def format_entry(view: ScheduleEntryView, with_staff: bool = False) -> str:
        """One entry line"""
        if view.is_closure:
            return f"🚫 <i>{view.activity}</i>"

        line = f"{view.start_time:%H:%M}-{view.end_time:%H:%M} {view.activity}"
        if view.is_event:
            line = f"🎉 {line}"
        elif view.is_cancelled:
            line = f"❌ <s>{line}</s>"
        if view.id is not None:
            line = f"<code>#{view.id}</code> {line}"
        if with_staff:
            line += f" · {html.escape(view.staff_name)}"
        if view.children:
            line += f"\n    👶 {html.escape(', '.join(view.children))}"
        return line

    @staticmethod
    def format_schedule(
        title: str, views: Sequence[ScheduleEntryView], with_staff: bool = False
    ) -> str:
        """
        Schedule grouped by day

        Args:
            title: Message title
            views: Entries to display
            with_staff: Show the staff member of every entry

        Returns:
            Message text
        """
        if not views:
            return f"<b>{html.escape(title)}</b>\n\nNo entries"

        by_day: Dict[date, List[ScheduleEntryView]] = defaultdict(list)
        for view in views:
            by_day[view.start_time.date()].append(view)

        lines = [f"<b>{html.escape(title)}</b>"]
        for day in sorted(by_day):
            lines.append("")
            lines.append(ScheduleFormatter._day_title(day))
            seen_closures = set()
            for view in sorted(by_day[day], key=lambda item: (item.start_time, item.staff_name)):
                if view.is_closure and not with_staff:
                    if view.activity in seen_closures:
                        continue
                    seen_closures.add(view.activity)
                lines.append(ScheduleFormatter.format_entry(view, with_staff))

        return "\n".join(lines)

    @staticmethod
    def format_preview(semester_name: str, entries: Sequence[ProjectedEntry]) -> str:
        """Summary of a projection before import"""
        closures = [entry for entry in entries if entry.closure is not None]
        closed_days = sorted({entry.day for entry in closures})
        staff_count = len({entry.staff_id for entry in entries})

        lines = [
            f"<b>👀 Preview • {html.escape(semester_name)}</b>",
            "",
            f"Entries: {len(entries) - len(closures)}",
            f"Closure markers: {len(closures)}",
            f"Staff members: {staff_count}",
        ]
        if closed_days:
            lines.append("")
            lines.append("<b>Closed days:</b>")
            kinds = {entry.day: entry.activity for entry in closures}
            lines.extend(f"• {day:%d.%m.%Y} {kinds[day]}" for day in closed_days)
        return "\n".join(lines)

    @staticmethod
    def format_transferred(entry_id: int, children: Sequence[TransferredChild]) -> str:
        if not children:
            return f"No child was moved away from entry #{entry_id}"
        lines = [f"<b>Children moved away from entry #{entry_id}</b>", ""]
        lines.extend(
            f"• {html.escape(child.child_name)} → <code>#{child.current_entry_id}</code> "
            f"{child.current_activity} ({html.escape(child.current_staff)})"
            for child in children
        )
        return "\n".join(lines)


def split_message(text: str, limit: int = 4096) -> List[str]:
    """Splits a long message on line boundaries"""
    parts = []
    current = ""
    for line in text.split("\n"):
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit and current:
            parts.append(current)
            current = line
        else:
            current = candidate
    if current:
        parts.append(current)
    return parts
