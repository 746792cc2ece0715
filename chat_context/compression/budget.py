# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass


@dataclass(frozen=True)
class CompressionBudget:
    """Token budget for one model invocation, derived fresh on every call.

    Attributes:
        context_limit: Model context window in tokens
        reserved_output: Tokens reserved for the model's reply
        current_tokens: Tokens currently used by the prompt
    """

    context_limit: int
    reserved_output: int
    current_tokens: int

    @property
    def target_budget(self) -> int:
        return self.context_limit - self.reserved_output

    @property
    def remaining_budget(self) -> int:
        return self.target_budget - self.current_tokens

    @property
    def remaining_ratio(self) -> float:
        """Remaining share of the target budget (1.0 when the target is not positive)."""
        if self.target_budget <= 0:
            return 1.0
        return self.remaining_budget / self.target_budget

    @property
    def is_over_budget(self) -> bool:
        return self.current_tokens > self.target_budget

    @classmethod
    def from_remaining(cls, remaining_budget: int, target_budget: int) -> "CompressionBudget":
        """Rebuild a budget from its target and the tokens still free."""
        return cls(
            context_limit=target_budget,
            reserved_output=0,
            current_tokens=target_budget - remaining_budget,
        )
