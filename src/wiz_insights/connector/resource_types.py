"""Resource types synced by the Wiz Insights connector."""

from __future__ import annotations

from wiz_insights.models.resources import ResourceType

TRAIT_SECURITY_INSIGHT = "SECURITY_INSIGHT"

# Wiz issues, synced as security insights. Insights carry no
# entitlements or grants.
ISSUE_RESOURCE_TYPE = ResourceType(
    id="security-insight",
    display_name="Security Insight",
    traits=(TRAIT_SECURITY_INSIGHT,),
    permissions=("read:issues",),
    skip_entitlements_and_grants=True,
)
