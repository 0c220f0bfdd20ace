# src/habit_vault/reminders/email_render.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from html import escape

from ..tasks.task_models import Priority, Profile, Task

NO_DESCRIPTION = "No description provided"


@dataclass(slots=True, frozen=True)
class PriorityStyle:
    emoji: str
    label: str
    accent: str
    background: str


PRIORITY_STYLES: dict[Priority, PriorityStyle] = {
    Priority.URGENT: PriorityStyle(emoji="🚨", label="URGENT", accent="#EF4444", background="#FEE2E2"),
    Priority.NORMAL: PriorityStyle(emoji="⏰", label="Normal", accent="#6366F1", background="#F3F4F6"),
    Priority.LOW: PriorityStyle(emoji="📌", label="Low Priority", accent="#6366F1", background="#F3F4F6"),
}


@dataclass(slots=True, frozen=True)
class ReminderEmail:
    subject: str
    html: str
    text: str


def format_deadline(deadline: datetime, tz: tzinfo = timezone.utc) -> str:
    """E.g. "Monday, March 2, 2026 at 09:30 AM UTC"."""
    dt = deadline.astimezone(tz)
    return f"{dt:%A}, {dt:%B} {dt.day}, {dt.year} at {dt:%I:%M %p} {dt:%Z}".rstrip()


def render_reminder_email(
    task: Task,
    profile: Profile,
    *,
    app_name: str = "Habit Vault",
    tz: tzinfo = timezone.utc,
) -> ReminderEmail:
    style = PRIORITY_STYLES[task.priority]
    urgent = task.priority == Priority.URGENT

    user_name = (profile.name or "").strip() or "there"
    description = (task.description or "").strip() or NO_DESCRIPTION
    deadline = format_deadline(task.deadline, tz) if task.deadline else "not set"

    subject = f"{style.emoji} Task Reminder: {task.title}"

    if urgent:
        call_out = "⚡ This is urgent! Complete it as soon as possible! ⚡"
        call_out_html = (
            f'<p style="font-size: 16px; color: {style.accent}; font-weight: bold; '
            f'text-align: center; margin: 20px 0;">{escape(call_out)}</p>'
        )
    else:
        call_out = "Don't forget to complete this task on time! 💪"
        call_out_html = (
            f'<p style="font-size: 16px; color: {style.accent}; text-align: center; '
            f'margin: 20px 0;">{escape(call_out)}</p>'
        )

    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f9fafb;">
  <div style="background: linear-gradient(135deg, #8B5CF6 0%, #6366F1 100%); padding: 30px; border-radius: 10px 10px 0 0; text-align: center;">
    <h1 style="color: white; margin: 0; font-size: 28px;">🌱 {escape(app_name)} Reminder</h1>
  </div>
  <div style="background-color: white; padding: 30px; border-radius: 0 0 10px 10px;">
    <p style="font-size: 18px; color: #374151; margin-bottom: 20px;">Hi {escape(user_name)},</p>
    <div style="background-color: {style.background}; padding: 20px; border-radius: 8px; margin: 20px 0; border-left: 4px solid {style.accent};">
      <h2 style="color: #1F2937; margin-top: 0;">{style.emoji} {escape(task.title)}</h2>
      <p style="color: #6B7280; margin: 10px 0;"><strong>Description:</strong> {escape(description)}</p>
      <p style="color: #6B7280; margin: 10px 0;"><strong>Priority:</strong> <span style="color: {style.accent}; font-weight: bold;">{style.label}</span></p>
      <p style="color: #6B7280; margin: 10px 0;"><strong>Deadline:</strong> {escape(deadline)}</p>
    </div>
    {call_out_html}
    <p style="color: #6B7280; font-size: 14px; margin-top: 30px;">Stay organized and productive! 🚀</p>
    <p style="color: #9CA3AF; font-size: 12px; margin-top: 20px; padding-top: 20px; border-top: 1px solid #E5E7EB;">
      You're receiving this email because you set a deadline for this task in {escape(app_name)}.
    </p>
  </div>
</div>
""".strip()

    text = "\n".join(
        [
            f"Hi {user_name},",
            "",
            f"{style.emoji} {task.title}",
            f"Description: {description}",
            f"Priority: {style.label}",
            f"Deadline: {deadline}",
            "",
            call_out,
            "",
            f"You're receiving this email because you set a deadline for this task in {app_name}.",
        ]
    )

    return ReminderEmail(subject=subject, html=html, text=text)
