import os

import pytest

from mailguard.models import Message
from mailguard.rules import load_rules

RULES_PATH = os.path.join(os.path.dirname(__file__), "..", "rules", "rules.yaml")


@pytest.fixture
def rules_path():
    return RULES_PATH


@pytest.fixture(scope="session")
def default_rules():
    return load_rules(RULES_PATH)


@pytest.fixture
def rule_set(default_rules):
    return default_rules[0]


@pytest.fixture
def config(default_rules):
    return default_rules[1]


@pytest.fixture
def prize_scam():
    return Message(
        sender="promo@lucky-draw.example",
        subject="URGENT: Claim your $1000 prize NOW!",
        body="Click here to collect. We guarantee every winner gets paid.",
    )


@pytest.fixture
def meeting_reminder():
    return Message(
        sender="dana@company.example",
        subject="Meeting reminder for tomorrow",
        body=(
            "Hi team, a reminder that our project review is scheduled for 10am "
            "tomorrow in room 4. Please bring your status notes. Thanks, Dana"
        ),
    )


@pytest.fixture
def bank_phish():
    return Message(
        sender="prince@winner.example",
        subject="Account notice",
        body="Please reply with your bank account details so we can confirm identity.",
    )


@pytest.fixture
def shouting():
    return Message(body="PLEASE READ THIS RIGHT AWAY BEFORE THE OFFICE CLOSES TODAY!!!!")
