"""Spiders: named sets of crawl rules, and the menu of available spiders."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from . import scheduler
from .request import Request
from .response import Response

# Keyword value marking a spider that accepts keywords (must be a single space).
CAN_ADD = " "


@dataclass
class Rule:
    """One crawl rule.

    ``out_field`` names the output columns; a rule with none outputs no data.
    """

    out_field: list[str] = field(default_factory=list)
    parse_func: Callable[["Spider", Response], None] | None = None
    aid_func: Callable[["Spider", dict[str, Any]], Any] | None = None


@dataclass
class RuleTree:
    """Entry point and named rules of a spider."""

    spread: list[str] = field(default_factory=list)
    root: Callable[["Spider"], None] | None = None
    nodes: dict[str, Rule] = field(default_factory=dict)


@dataclass
class Spider:
    """A crawl definition: its rules plus run-time settings.

    ``pausetime`` is (base, random) in milliseconds: pauses fall within
    base .. base + random.
    """

    name: str
    description: str = ""
    rule_tree: RuleTree = field(default_factory=RuleTree)
    pausetime: tuple[int, int] = (0, 0)
    max_page: int = 0
    keyword: str = ""
    depth: int = 0
    proxy: str = ""
    id: int = 0

    @property
    def rules(self) -> dict[str, Rule]:
        return self.rule_tree.nodes

    def start(self) -> None:
        """Run the root of the rule tree."""
        if self.rule_tree.root is None:
            raise ValueError(f"spider {self.name!r} has no root rule")
        self.rule_tree.root(self)

    def add_menu(self) -> None:
        """Register this spider in the shared menu."""
        MENU.add(self)

    def set_pausetime(self, base: int, random: int) -> None:
        self.pausetime = (base, random)

    def copy(self) -> "Spider":
        """A shallow copy; the rule tree is shared."""
        return dataclasses.replace(self)

    def go_rule(self, resp: Response) -> None:
        """Parse a response with the rule it names."""
        rule = self.rule_tree.nodes[resp.rule_name]
        if rule.parse_func is None:
            raise ValueError(f"rule {resp.rule_name!r} has no parse function")
        rule.parse_func(self, resp)

    def call_rule(self, rule_name: str, resp: Response) -> None:
        """Parse a response with the named rule."""
        resp.rule_name = rule_name
        self.go_rule(resp)

    def aid_rule(self, rule_name: str, aid: dict[str, Any]) -> Any:
        """Call the helper function of the named rule."""
        rule = self.rule_tree.nodes[rule_name]
        if rule.aid_func is None:
            raise ValueError(f"rule {rule_name!r} has no aid function")
        return rule.aid_func(self, aid)

    def get_out_field(self, resp: Response, index: int) -> str:
        """Output column name of the response's rule."""
        return self.rule_tree.nodes[resp.rule_name].out_field[index]

    def show_out_field(self, rule_name: str, index: int) -> str:
        """Output column name of any rule."""
        return self.rule_tree.nodes[rule_name].out_field[index]

    def loop_add_queue(
        self,
        loop: Sequence[int],
        url_fn: Callable[[int], Iterable[str]],
        param: dict[str, Any],
    ) -> None:
        """Queue the URLs ``url_fn`` gives for each i in loop[0] .. loop[1]-1."""
        for i in range(loop[0], loop[1]):
            self.bulk_add_queue(url_fn(i), param)

    def bulk_add_queue(self, urls: Iterable[str], param: dict[str, Any]) -> None:
        """Queue one request per URL, sharing the other parameters."""
        for url in urls:
            param["url"] = url
            self.add_queue(param)

    def add_queue(self, param: dict[str, Any]) -> None:
        """Build a request and hand it to the shared scheduler."""
        scheduler.current().push(self.new_request(param))

    def new_request(self, param: dict[str, Any]) -> Request:
        """Build a request owned by this spider."""
        param["spider"] = self.name
        req = Request.from_params(param)
        req.spider_id = self.id
        return req


class Menu:
    """The list of available spiders."""

    def __init__(self) -> None:
        self._spiders: list[Spider] = []

    def add(self, spider: Spider) -> None:
        self._spiders.append(spider)

    def get_all(self) -> list[Spider]:
        return list(self._spiders)

    def get_by_name(self, name: str) -> Spider | None:
        return next((sp for sp in self._spiders if sp.name == name), None)


MENU = Menu()