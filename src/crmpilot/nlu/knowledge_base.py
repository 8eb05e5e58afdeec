"""KnowledgeBase -- 静态排障知识

按意图提供排障步骤、升级触发词和后续动作。
"""

from pydantic import BaseModel, Field

from crmpilot.core.models.enums import TicketPriority


class Solution(BaseModel):
    """单个意图的解决方案数据（未知意图返回全空实例）"""

    troubleshooting_steps: list[str] = Field(default_factory=list)
    escalation_triggers: list[str] = Field(default_factory=list)
    follow_up_actions: list[str] = Field(default_factory=list)


def _get_default_solutions() -> dict[str, Solution]:
    return {
        "login_issue": Solution(
            troubleshooting_steps=[
                'Try resetting your password using the "Forgot Password" link',
                "Clear your browser cache and cookies",
                "Try logging in from an incognito/private browsing window",
                "Check if your account is locked (wait 15 minutes and try again)",
                "Verify your two-factor authentication device is working",
                "Try a different browser or device",
            ],
            escalation_triggers=["account locked for >24 hours", "SSO integration issues"],
            follow_up_actions=[
                "password reset email sent",
                "account unlock scheduled",
                "MFA reset initiated",
            ],
        ),
        "billing_issue": Solution(
            troubleshooting_steps=[
                "Review your recent subscription changes in account settings",
                "Check if any add-ons were purchased or cancelled",
                "Verify your payment method is up to date",
                "Look for any prorated charges due to plan changes",
                "Check if tax rates changed in your location",
            ],
            escalation_triggers=["disputes over charges", "refund requests >$500"],
            follow_up_actions=[
                "billing adjustment processed",
                "refund initiated",
                "payment method updated",
            ],
        ),
        "feature_request": Solution(
            follow_up_actions=[
                "logged in product backlog",
                "forwarded to product team",
                "added to user research list",
            ],
        ),
        "bug_report": Solution(
            troubleshooting_steps=[
                "Try refreshing the page",
                "Clear browser cache and cookies",
                "Disable browser extensions temporarily",
                "Try a different browser",
                "Check if the issue persists on different devices",
            ],
            escalation_triggers=["affects multiple users", "data loss", "security implications"],
            follow_up_actions=[
                "bug report created",
                "assigned to development team",
                "workaround provided",
            ],
        ),
        "integration_issue": Solution(
            troubleshooting_steps=[
                "Verify your API credentials are correct and active",
                "Check API rate limits and usage",
                "Validate data formats match our API documentation",
                "Test webhook endpoints are accessible and responding",
                "Review integration logs for specific error messages",
            ],
            escalation_triggers=["enterprise integration failures", "data sync issues"],
            follow_up_actions=[
                "API credentials reset",
                "rate limits adjusted",
                "technical documentation provided",
            ],
        ),
        "performance_issue": Solution(
            troubleshooting_steps=[
                "Try reducing the amount of data displayed per page",
                "Check your internet connection speed",
                "Close other browser tabs and applications",
                "Try during off-peak hours",
                "Clear browser cache to improve loading times",
            ],
            escalation_triggers=[
                "system-wide slowdowns",
                "timeout errors affecting business operations",
            ],
            follow_up_actions=[
                "performance monitoring enabled",
                "server optimization scheduled",
                "caching improvements deployed",
            ],
        ),
    }


class KnowledgeBase:
    """知识库（只读）"""

    def __init__(self, solutions: dict[str, Solution] | None = None) -> None:
        self._solutions = solutions if solutions is not None else _get_default_solutions()

    def get_solution(self, intent: str) -> Solution:
        """按意图查询解决方案；未知意图返回空 Solution"""
        return self._solutions.get(intent) or Solution()

    def should_escalate(
        self,
        intent: str,
        message: str | None,
        priority: TicketPriority | str | None,
    ) -> bool:
        """消息包含任一升级触发词（大小写不敏感），或优先级为 High"""
        if priority is not None and str(priority) == TicketPriority.HIGH:
            return True
        lowered = (message or "").lower()
        return any(
            trigger.lower() in lowered
            for trigger in self.get_solution(intent).escalation_triggers
        )
