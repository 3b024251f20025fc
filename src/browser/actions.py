"""Semantic action execution: natural-language instruction in, UI interactions out.

The workflow only depends on the `ActionExecutor` protocol. `LLMActionExecutor` is the concrete
implementation used by the CLI: it shows an OpenAI-style chat model the visible interactive
elements of the page, asks for a small JSON action plan, validates the plan, and carries it out
with Playwright locators.

Any instruction that cannot be carried out raises `ActionError`; callers treat that as a failed
step, never as a crash.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from playwright.async_api import Error as PlaywrightError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.browser.session import PageSession

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

    from src.browser.session import BrowserSession
    from src.config.settings import Settings

logger = logging.getLogger(__name__)

_MAX_ELEMENTS = 150
_ACTION_TIMEOUT_MS = 10_000

# Collects visible interactive elements so the model can refer to them by their visible text.
_SNAPSHOT_JS = """(limit) => {
    const selector = 'a, button, input, select, textarea, [role="button"], [role="link"],'
        + ' [role="checkbox"], [role="option"], [role="combobox"], [role="tab"]';
    const out = [];
    for (const el of document.querySelectorAll(selector)) {
        const rect = el.getBoundingClientRect();
        const style = window.getComputedStyle(el);
        if (rect.width === 0 || rect.height === 0 || style.visibility === 'hidden') continue;
        const labelEl = el.id ? document.querySelector(`label[for="${el.id}"]`) : null;
        out.push({
            tag: el.tagName.toLowerCase(),
            role: el.getAttribute('role') || '',
            type: el.getAttribute('type') || '',
            text: (el.innerText || el.value || '').trim().slice(0, 80),
            label: (el.getAttribute('aria-label') || (labelEl && labelEl.innerText) || '').trim(),
            placeholder: el.getAttribute('placeholder') || '',
        });
        if (out.length >= limit) break;
    }
    return out;
}"""


class ActionError(RuntimeError):
    """Raised when an instruction could not be carried out on the current page."""


class ActionExecutor(Protocol):
    """Carries out one natural-language instruction against the session's current page."""

    async def act(self, session: BrowserSession, instruction: str) -> None: ...


class PlannedAction(BaseModel):
    """One concrete UI interaction proposed by the model."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    action: Literal["click", "fill", "select", "check", "press", "scroll", "none"]
    target: str = ""
    value: str = ""


class ActionPlan(BaseModel):
    """The model's answer: actions to run, or an error when the instruction is impossible."""

    model_config = ConfigDict(extra="ignore")

    actions: list[PlannedAction] = Field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for the OpenAI-style Chat Completions API call."""

    api_key: str
    model: str = "gpt-4o-mini"
    api_base: str = "https://api.openai.com/v1"
    timeout_s: float = 30.0


def llm_config_from_settings(settings: Settings) -> LLMConfig:
    """Build the LLM config from application settings.

    Raises:
        ActionError: If no API key is configured.
    """

    if not settings.llm_api_key:
        raise ActionError("LLM_API_KEY is required to drive the browser")
    return LLMConfig(
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        api_base=settings.llm_api_base,
        timeout_s=settings.llm_timeout_s,
    )


def _load_prompt() -> str:
    prompt_path = Path(__file__).resolve().parent / "prompt_act_v1.md"
    return prompt_path.read_text(encoding="utf-8")


def _strip_code_fences(text: str) -> str:
    value = (text or "").strip()
    if value.startswith("```"):
        value = value.strip("`")
        value = value.removeprefix("json").strip()
    return value


def _chat_completions_url(api_base: str) -> str:
    return api_base.rstrip("/") + "/chat/completions"


def is_conditional(instruction: str) -> bool:
    """Whether an instruction may legitimately need no action ("If there is a checkbox, ...")."""

    return instruction.lstrip().lower().startswith("if ")


def parse_action_plan(content: str) -> ActionPlan:
    """Decode and validate the model's JSON answer.

    Raises:
        ActionError: If the content is not a valid action plan.
    """

    try:
        return ActionPlan.model_validate(json.loads(_strip_code_fences(content)))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ActionError("LLM did not return a valid action plan") from exc


class LLMActionExecutor:
    """`ActionExecutor` backed by a chat model and Playwright."""

    def __init__(self, config: LLMConfig) -> None:
        self._config = config
        self._prompt = _load_prompt()

    async def act(self, session: BrowserSession, instruction: str) -> None:
        if not isinstance(session, PageSession):
            raise ActionError("session has no Playwright page")
        page = session.page

        try:
            elements = await page.evaluate(_SNAPSHOT_JS, _MAX_ELEMENTS)
            title = await page.title()
        except PlaywrightError as exc:
            raise ActionError(f"could not read page: {exc}") from exc

        user_content = json.dumps(
            {
                "instruction": instruction,
                "url": page.url,
                "title": title,
                "elements": elements,
            },
            ensure_ascii=False,
        )
        content = await asyncio.to_thread(self._complete, user_content)
        plan = parse_action_plan(content)
        if plan.error:
            raise ActionError(plan.error)
        if not plan.actions and not is_conditional(instruction):
            raise ActionError("no actions planned for instruction")

        logger.debug("plan for %r: %s", instruction, plan.actions)
        for planned in plan.actions:
            try:
                await self._perform(page, planned)
            except PlaywrightError as exc:
                raise ActionError(f"{planned.action} {planned.target!r} failed: {exc}") from exc

    def _complete(self, user_content: str) -> str:
        payload = {
            "model": self._config.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": self._prompt},
                {"role": "user", "content": user_content},
            ],
        }

        req = Request(
            _chat_completions_url(self._config.api_base),
            method="POST",
            headers={
                "Authorization": f"Bearer {self._config.api_key}",
                "Content-Type": "application/json",
            },
            data=json.dumps(payload).encode(),
        )

        try:
            with urlopen(req, timeout=self._config.timeout_s) as resp:  # noqa: S310 (configured API endpoint)
                body = resp.read()
        except HTTPError as exc:
            raise ActionError(f"LLM HTTP error: {exc.code}") from exc
        except (URLError, TimeoutError) as exc:
            raise ActionError("LLM connection error") from exc

        try:
            decoded = json.loads(body)
            return decoded["choices"][0]["message"]["content"]
        except (json.JSONDecodeError, KeyError, IndexError, TypeError) as exc:
            raise ActionError("Unexpected LLM response format") from exc

    async def _perform(self, page: Page, planned: PlannedAction) -> None:
        if planned.action == "none":
            return
        if planned.action == "press":
            await page.keyboard.press(planned.value or "Enter")
            return
        if planned.action == "scroll" and not planned.target:
            await page.mouse.wheel(0, 600)
            return

        locator = await _resolve(page, planned)
        if planned.action == "click":
            await locator.click(timeout=_ACTION_TIMEOUT_MS)
        elif planned.action == "fill":
            await locator.fill(planned.value, timeout=_ACTION_TIMEOUT_MS)
        elif planned.action == "select":
            await locator.select_option(label=planned.value, timeout=_ACTION_TIMEOUT_MS)
        elif planned.action == "check":
            await locator.check(timeout=_ACTION_TIMEOUT_MS)
        elif planned.action == "scroll":
            await locator.scroll_into_view_if_needed(timeout=_ACTION_TIMEOUT_MS)


def _candidates(page: Page, planned: PlannedAction) -> list[Locator]:
    target = planned.target
    if planned.action in {"fill", "select"}:
        return [
            page.get_by_label(target, exact=False),
            page.get_by_placeholder(target, exact=False),
            page.get_by_role("textbox", name=target),
            page.get_by_role("combobox", name=target),
        ]
    if planned.action == "check":
        return [
            page.get_by_role("checkbox", name=target),
            page.get_by_label(target, exact=False),
        ]
    return [
        page.get_by_role("button", name=target),
        page.get_by_role("link", name=target),
        page.get_by_role("option", name=target),
        page.get_by_role("tab", name=target),
        page.get_by_label(target, exact=False),
        page.get_by_text(target, exact=False),
    ]


async def _resolve(page: Page, planned: PlannedAction) -> Locator:
    """Find the first visible element matching the planned target."""

    if not planned.target:
        raise ActionError(f"{planned.action} needs a target")

    for locator in _candidates(page, planned):
        for idx in range(await locator.count()):
            candidate = locator.nth(idx)
            if await candidate.is_visible():
                return candidate
    raise ActionError(f"could not find element {planned.target!r}")


def create_executor(settings: Settings) -> LLMActionExecutor:
    """Build the default executor from settings."""

    return LLMActionExecutor(llm_config_from_settings(settings))
