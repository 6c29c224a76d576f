"""HTML forms found on crawled pages, submitted as new crawl requests."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlencode, urlsplit

from .spider import Spider
from .textutil import make_url

Values = dict[str, list[str]]


def serialize_form(selection: Any) -> tuple[Values, Values]:
    """Split a form's named controls into field values and submit-button values."""
    fields: Values = {}
    buttons: Values = {}
    for element in selection.find_all(["input", "button", "textarea"]):
        name = element.get("name")
        if name is None:
            continue
        kind = element.get("type")
        if kind is None and element.name != "textarea":
            continue
        value = element.get("value", "")
        target = buttons if kind == "submit" else fields
        target.setdefault(name, []).append(value)
    return fields, buttons


def form_attributes(
    url: str, form: Any, scheme_and_host: str | None = None
) -> tuple[str, str]:
    """The form's upper-case method and absolute action, or two empty strings."""
    method = form.get("method", "GET")
    action = form.get("action", url)
    if not action:
        return "", ""
    action, ok = make_url(action, scheme_and_host)
    if not ok:
        return "", ""
    return method.upper(), action


class Form:
    """A form on a page; submitting it queues a request for ``rule``."""

    def __init__(
        self,
        spider: Spider,
        rule: str,
        url: str,
        form: Any,
        scheme_and_host: str | None = None,
    ) -> None:
        self.spider = spider
        self.rule = rule
        self.selection = form
        self.fields, self.buttons = serialize_form(form)
        if scheme_and_host is None:
            parts = urlsplit(url)
            scheme_and_host = f"{parts.scheme}://{parts.netloc}"
        method, action = form_attributes(url, form, scheme_and_host)
        if not action:
            raise ValueError(f"form on {url!r} has no usable action")
        self.method = method or "GET"
        self.action = action

    @property
    def dom(self) -> Any:
        """The form element itself."""
        return self.selection

    def input(self, name: str, value: str) -> "Form":
        """Set an existing field; unknown names are ignored."""
        if name in self.fields:
            self.fields[name] = [value]
        return self

    def inputs(self, values: dict[str, str]) -> "Form":
        """Set several existing fields at once."""
        for name, value in values.items():
            self.input(name, value)
        return self

    def submit(self) -> bool:
        """Click the first button, or send the form without one if it has none."""
        if self.buttons:
            return self.click(next(iter(self.buttons)))
        return self._send("", "")

    def click(self, button: str) -> bool:
        """Submit the form with the named button; False if there is no such button."""
        if button not in self.buttons:
            return False
        return self._send(button, self.buttons[button][0])

    def _send(self, button_name: str, button_value: str) -> bool:
        values = {name: list(vals) for name, vals in self.fields.items()}
        if button_name:
            values[button_name] = [button_value]
        if self.method == "GET":
            query = urlencode(sorted(values.items()), doseq=True)
            self.spider.add_queue(
                {"rule": self.rule, "url": f"{self.action}?{query}", "method": "GET"}
            )
            return True
        method = (
            "POST-M"
            if self.selection.get("enctype") == "multipart/form-data"
            else self.method
        )
        self.spider.add_queue(
            {
                "rule": self.rule,
                "url": self.action,
                "postData": values,
                "method": method,
            }
        )
        return True