"""Built-in constitution used when no document path is configured."""

DEFAULT_CONSTITUTION = """\
version: "3.0"
effective_date: "2025-01-01"

priorities:
  - id: 1
    name: data_integrity
    description: "Knowledge base content must stay verifiable and recoverable."
  - id: 2
    name: human_oversight
    description: "Automated actors propose, humans approve."
  - id: 3
    name: ai_transparency
    description: "AI-generated content explains where it came from."
  - id: 4
    name: helpfulness
    description: "Quality guidance; never blocks a request."

rules:
  - id: destructive_confirm
    priority: 1
    description: "Destructive operations require explicit confirmation"
  - id: candidate_code_required
    priority: 1
    description: "Candidate submissions must carry verifiable code"
  - id: ai_no_direct_recipe
    priority: 2
    description: "AI actors cannot create or approve recipes directly"
  - id: batch_authorized
    priority: 2
    description: "Batch operations require explicit authorization"
  - id: reasoning_complete
    priority: 3
    description: "Reasoning, when provided, must be complete"
  - id: guard_rule_source
    priority: 3
    description: "Guard rules must reference their source recipe"

roles:
  - id: developer_admin
    name: Developer Admin
    permissions: ["*"]
    constraints:
      - "Destructive operations still require confirmation"

  - id: developer
    name: Developer
    permissions:
      - "read:*"
      - "create:recipes"
      - "update:recipes"
      - "create:candidates"
      - "approve:candidates"
      - "reject:candidates"
      - "create:guard_rules"
      - "update:guard_rules"
    constraints:
      - "Batch operations require authorization"

  - id: external_agent
    name: External Agent
    permissions:
      - "read:recipes"
      - "read:candidates"
      - "read:guard_rules"
      - "create:candidates"
      - "submit:candidates"
      - "search:recipes"
      - "read:audit_logs:self"
    constraints:
      - "Cannot approve candidates"
      - "Cannot modify recipes directly"
      - "Must provide complete reasoning"
    requiredCapabilities: ["reasoning"]

  - id: cursor_agent
    name: Cursor Agent
    permissions:
      - "read:recipes"
      - "read:candidates"
      - "read:guard_rules"
      - "create:candidates"
      - "submit:candidates"
      - "search:recipes"
    constraints:
      - "Cannot create, update or approve recipes"
      - "Cannot delete anything"

  - id: guard_engine
    name: Guard Engine
    permissions:
      - "read:recipes"
      - "read:candidates"
      - "read:guard_rules"
      - "create:guard_rules"
    constraints:
      - "Guard rules must cite their source recipe"
"""
