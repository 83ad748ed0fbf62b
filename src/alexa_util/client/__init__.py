"""HTTP client for the Alexa Skill Management API.

Classes:
    :class:`SkillClient` -- blocking client backed by :class:`httpx.Client`
    that authenticates every call through a
    :class:`~alexa_util.auth.gate.TokenGate`.

Example::

    from alexa_util.client import SkillClient

    with SkillClient(gate) as client:
        export = client.export_skill_package("dev", skill_id, SkillStage.LIVE)
"""

from alexa_util.client.skill_client import SkillClient

__all__ = ["SkillClient"]
