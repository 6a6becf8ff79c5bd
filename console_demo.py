"""
Offline console demo: runs member conversations without any API keys.

Uses the real dialogue session, state machine, slot extractor, OTP check
and mock member store, with a keyword classifier in place of the LLM and
the transcript itself as the slot hint. No network calls. Designed for
live demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario email
    python console_demo.py --scenario fund
"""

import argparse
import asyncio
from typing import Optional

from super_assistant.config import settings
from super_assistant.conversation.intents import KeywordIntentClassifier
from super_assistant.conversation.session import DialogueSession
from super_assistant.schemas.conversation_schema import DisplayDirective, TurnResult
from super_assistant.services.llm_client import PassthroughSlotNormalizer
from super_assistant.tools.customer import CustomerStore

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

# Scenario step replaced with the most recently sent code
OTP_PLACEHOLDER = "{otp}"


class ConsoleSession:
    """Drives a dialogue session from the terminal."""

    def __init__(self) -> None:
        self.session = DialogueSession(
            store=CustomerStore(),
            classifier=KeywordIntentClassifier(),
            slot_normalizer=PassthroughSlotNormalizer(),
        )
        self._last_code: Optional[str] = None

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[Assistant]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "balance": [
            "What's my super balance?",
            "Can you show me my personal details?",
        ],
        "address": [
            "I'd like to update my address",
            "42 Wallaby Way, Sydney NSW 2000",
            OTP_PLACEHOLDER,
        ],
        "email": [
            "I need to change my email",
            "jane dot smith at outlook dot com",
            "one one one one one one",
            OTP_PLACEHOLDER,
        ],
        "adviser": [
            "How can I grow my super?",
            "hmm, what would that involve?",
            "yes please",
            "Tuesday at 2 p.m.",
        ],
        "fund": [
            "I want some advice on better investment options",
            "yes, good timing actually, I'm starting a new job next month",
            "Friday 11am works",
            "yes please",
        ],
    }

    def _show_display(self, display: DisplayDirective) -> None:
        payload = display.payload
        if display.view == "otp_sent":
            self._last_code = payload.get("code")
            self.system_log(f"{YELLOW}[demo] SMS to registered mobile: code {self._last_code}{RESET}")
        elif display.view == "balance":
            balance = payload.get("balance", {})
            self.system_log(
                f"Card: balance ${balance.get('amount', 0):,.2f} "
                f"(updated {balance.get('lastUpdated')}, growth {balance.get('growthRate')}%)"
            )
        elif display.view == "personal_details":
            customer = payload.get("customer", {})
            self.system_log(
                f"Card: {customer.get('name')} | {customer.get('email')} | {customer.get('address')}"
            )
        elif display.view == "choice_of_fund_form":
            form = payload.get("form", {})
            receipt = payload.get("receipt", {})
            self.system_log(
                f"Card: Choice of Fund form for {form.get('memberName')} "
                f"({form.get('fundName')}, USI {form.get('fundUsi')}), "
                f"copy {receipt.get('receiptId')} sent to {receipt.get('sentTo')}"
            )
        else:
            self.system_log(f"Card: {display.view} {payload}")

    def _show(self, result: TurnResult) -> None:
        for reply in result.replies:
            self.agent_say(reply)
        for display in result.displays:
            self._show_display(display)
        self.system_log(f"State: {result.phase}")

    async def _process_input(self, text: str) -> None:
        self._show(await self.session.submit(text))
        if self.session.has_scheduled_offer:
            self.system_log(
                f"Fund offer due in {settings.dialogue.fund_offer_delay_sec:.0f}s..."
            )
            for result in await self.session.wait_for_scheduled():
                self._show(result)

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SUPER ASSISTANT - {title}{RESET}")
        print(f"{BOLD}  Fund: {settings.assistant.company_name}{RESET}")

    def _summary(self, title: str) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {title}{RESET}")
        print(f"{DIM}  State trace: {' -> '.join(self.session.machine.get_state_trace())}{RESET}")
        record = self.session.store.get()
        print(f"{DIM}  Record: {record.email} | {record.address}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        asyncio.run(self._run_scenario(scenario))

    async def _run_scenario(self, scenario: str) -> None:
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()
        self.agent_say(f"Hi, welcome to {settings.assistant.company_name}. How can I help you today?")

        for step in steps:
            text = (self._last_code or "") if step == OTP_PLACEHOLDER else step
            print(f"\n{BLUE}[Member] {RESET}{text}")
            await self._process_input(text)

        self._summary(f"Scenario '{scenario}' complete.")

    def run(self) -> None:
        asyncio.run(self._run_interactive())

    async def _run_interactive(self) -> None:
        self._banner("Console Demo")
        print(f"{BOLD}  Type 'quit' to exit{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()
        self.agent_say(f"Hi, welcome to {settings.assistant.company_name}. How can I help you today?")

        while True:
            user_input = input(f"\n{BLUE}[Member] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                break

            if len(user_input) > settings.dialogue.max_input_length:
                self.agent_say("That was quite long. Could you keep it brief for me?")
                continue

            await self._process_input(user_input)

        self._summary("Session ended.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
