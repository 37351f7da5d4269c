"""Pytest fixtures for cadence-qa tests."""

import logging
from typing import Generator

import pytest
import structlog

from cadence_qa.models import (
    ContractCategory,
    ContractType,
    GenerationContext,
    QualityRequirements,
)

# A small contract that passes every check.
CLEAN_CONTRACT = """\
// Simple counter contract
access(all) contract Counter {
    access(all) event Incremented(count: Int)

    access(all) var count: Int

    access(all) fun increment() {
        self.count = self.count + 1
        emit Incremented(count: self.count)
    }

    init() {
        self.count = 0
    }
}
"""

# Fails the quality threshold with nothing auto-fixable:
# unbalanced braces, empty bodies, legacy AuthAccount and a missing return.
BROKEN_CONTRACT = """\
access(all) contract Broken {
    access(all) fun setup(acct: AuthAccount) {}
    access(all) fun name(): String {
    }
"""

# Fails the quality threshold, but every critical issue is legacy `pub`
# access, which auto-correction rewrites.
LEGACY_CONTRACT = """\
pub contract Legacy {
    pub event Ping()
    pub var count: Int
    pub fun ping() {
        self.count = self.count + 1
        emit Ping()
    }
    init() {
        self.count = 0
    }
}
"""


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    from cadence_qa.cli import helpers

    helpers.reset_logging_state()

    # Reset structlog to default state
    structlog.reset_defaults()

    # Clear all handlers from root logger
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    helpers.reset_logging_state()
    structlog.reset_defaults()

    # Restore original handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def generic_context() -> GenerationContext:
    """Context for a generic contract with no extra requirements."""
    return GenerationContext(
        user_prompt="Create a simple counter contract",
        contract_type=ContractType(category=ContractCategory.GENERIC),
        quality_requirements=QualityRequirements(),
    )


@pytest.fixture
def clean_code() -> str:
    return CLEAN_CONTRACT


@pytest.fixture
def broken_code() -> str:
    return BROKEN_CONTRACT


@pytest.fixture
def legacy_code() -> str:
    return LEGACY_CONTRACT
