"""
Auditor Agent: security review of generated contracts.

The model answers through a forced function call whose parameters are the
``AuditReport`` JSON schema; see ``LLMGateway.generate_structured``.
"""

from .prompt import ChatPrompt, render_prompt


AUDITOR_SYSTEM_PROMPT = (
    "Your task is to analyze and assess smart contracts for auditing purposes by identifying the "
    "severity of the vulnerabilities, summarize them in a short title and description. Do not "
    "specify overflow/underflow vulnerabilities. The report should be generated in JSON format and "
    "should always follow the provided schema."
)

AUDITOR_USER_TEMPLATE = (
    "Generate a smart contract auditing report in JSON format by carefully including the title, "
    "severity and description of the issue, given the following code: {code}"
)


def create_audit_prompt(code: str) -> ChatPrompt:
    return render_prompt(AUDITOR_SYSTEM_PROMPT, AUDITOR_USER_TEMPLATE, code=code)
