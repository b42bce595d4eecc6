"""Shared type aliases for the notifier package."""

from __future__ import annotations

from typing import Any, Callable, Mapping

Document = Mapping[str, Any]
DocumentDict = dict[str, Any]
EmailMessage = dict[str, Any]
SendResult = dict[str, Any]
TriggerResult = dict[str, Any]
ChangeEvent = dict[str, Any]

SendEmailFn = Callable[..., Any]
SendTemplateEmailFn = Callable[..., Any]
ClockFn = Callable[[], Any]
ChangeListener = Callable[[str, str, "DocumentDict | None", "DocumentDict | None"], None]
