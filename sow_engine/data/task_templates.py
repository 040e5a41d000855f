"""
Task-tracker project templates.

Standard phase/task structures expanded for every proposal section when a
proposal is projected into the task tracker. Each phase becomes one task list
and each task one task in it.

Proposal type → template mapping at the bottom.
"""

TEMPLATES = {
    "metric_implementation": {
        "name": "Metric Implementation",
        "phases": [
            {
                "name": "Definition",
                "tasks": [
                    {"content": "Document metric definitions and business rules",
                     "description": "Define how each metric is calculated, which data sources feed it, and the business rules that apply."},
                    {"content": "Identify data sources and dependencies",
                     "description": "Map every system, table, or API that provides data for the metrics."},
                    {"content": "Define target thresholds and benchmarks",
                     "description": "Establish good and bad ranges for each metric from benchmarks and company goals."},
                    {"content": "Get stakeholder sign-off on definitions",
                     "description": "Review metric definitions with stakeholders to ensure alignment."},
                ],
            },
            {
                "name": "Configuration",
                "tasks": [
                    {"content": "Set up data pipelines and integrations",
                     "description": "Configure connections between source systems and reporting tools."},
                    {"content": "Build metric calculations in reporting tool",
                     "description": "Implement the metric formulas in the chosen platform."},
                    {"content": "Configure automated data refresh schedules",
                     "description": "Schedule data pulls to keep metrics current."},
                    {"content": "Build initial dashboards and views",
                     "description": "Create visual representations of the metrics for each audience."},
                ],
            },
            {
                "name": "Data Quality",
                "tasks": [
                    {"content": "Validate metric accuracy against known values",
                     "description": "Cross-check calculated metrics against manually verified numbers."},
                    {"content": "Identify and resolve data gaps",
                     "description": "Find missing data, null values, and inconsistencies that affect accuracy."},
                    {"content": "Set up data quality monitoring alerts",
                     "description": "Alert when data quality drops below acceptable thresholds."},
                ],
            },
            {
                "name": "Reporting",
                "tasks": [
                    {"content": "Finalize dashboard design and distribution",
                     "description": "Polish dashboards and automate distribution to stakeholders."},
                    {"content": "Create documentation and runbook",
                     "description": "Document how metrics work, how to troubleshoot, and who owns what."},
                    {"content": "Train stakeholders on metric interpretation",
                     "description": "Walk stakeholders through reading and acting on the metrics."},
                    {"content": "Establish ongoing review cadence",
                     "description": "Set up recurring reviews of the metrics."},
                ],
            },
        ],
    },

    "lifecycle_implementation": {
        "name": "Lifecycle Implementation",
        "phases": [
            {
                "name": "Discovery",
                "tasks": [
                    {"content": "Map current-state lifecycle processes",
                     "description": "Document how the lifecycle works today, including handoffs and decision points."},
                    {"content": "Identify gaps and friction points",
                     "description": "Find where leads or customers fall through cracks or stall."},
                    {"content": "Interview stakeholders across teams",
                     "description": "Get input from each team that touches the lifecycle."},
                    {"content": "Document requirements and constraints",
                     "description": "Capture what the new lifecycle must do and its constraints."},
                ],
            },
            {
                "name": "Design",
                "tasks": [
                    {"content": "Design future-state lifecycle stages",
                     "description": "Define stages, progression criteria, and ownership at each stage."},
                    {"content": "Define stage entry/exit criteria",
                     "description": "Establish measurable criteria for moving between stages."},
                    {"content": "Map automation opportunities",
                     "description": "Identify where automation reduces manual work."},
                    {"content": "Create SLA definitions between teams",
                     "description": "Define response time and handoff expectations."},
                    {"content": "Get design approval from stakeholders",
                     "description": "Review the proposed lifecycle and get sign-off."},
                ],
            },
            {
                "name": "Implementation",
                "tasks": [
                    {"content": "Configure CRM stages and fields",
                     "description": "Set up lifecycle stages, custom fields, and picklist values."},
                    {"content": "Build automation workflows",
                     "description": "Create workflows for stage transitions, notifications, and assignments."},
                    {"content": "Set up reporting and dashboards",
                     "description": "Track lifecycle velocity, conversion, and stage distribution."},
                    {"content": "Configure alerts and notifications",
                     "description": "Alert on SLA violations, stuck records, and key events."},
                ],
            },
            {
                "name": "Testing",
                "tasks": [
                    {"content": "Test all stage transitions end-to-end",
                     "description": "Walk test records through every lifecycle path."},
                    {"content": "Validate automation triggers and actions",
                     "description": "Verify every automation fires correctly."},
                    {"content": "Test edge cases and error scenarios",
                     "description": "Cover missing data, skipped stages, and failing processes."},
                    {"content": "UAT with end users",
                     "description": "Have users test the lifecycle and provide feedback."},
                ],
            },
            {
                "name": "Enablement",
                "tasks": [
                    {"content": "Create training materials",
                     "description": "Build guides or videos explaining the new lifecycle."},
                    {"content": "Conduct team training sessions",
                     "description": "Train each team on its role in the lifecycle."},
                    {"content": "Run parallel processing period",
                     "description": "Run old and new processes side by side before cutover."},
                    {"content": "Full cutover and go-live",
                     "description": "Switch to the new lifecycle and retire old processes."},
                    {"content": "Post-launch review and adjustments",
                     "description": "Review performance after 2-4 weeks and adjust."},
                ],
            },
        ],
    },

    "tool_implementation": {
        "name": "Tool Implementation",
        "phases": [
            {
                "name": "Requirements",
                "tasks": [
                    {"content": "Document functional requirements",
                     "description": "List every capability the tool needs to provide."},
                    {"content": "Map integration requirements",
                     "description": "Identify connected systems and the data flowing between them."},
                    {"content": "Define user roles and permissions",
                     "description": "Document who needs access and what they can do."},
                    {"content": "Create data migration plan",
                     "description": "Plan how existing data moves into the new tool."},
                ],
            },
            {
                "name": "Configuration",
                "tasks": [
                    {"content": "Set up tool instance and environment",
                     "description": "Provision the tool, base settings, and user accounts."},
                    {"content": "Configure custom fields and objects",
                     "description": "Shape the data model to the business requirements."},
                    {"content": "Build workflows and automation rules",
                     "description": "Configure automated processes within the tool."},
                    {"content": "Set up user roles and security",
                     "description": "Configure permissions, teams, and access controls."},
                ],
            },
            {
                "name": "Integration",
                "tasks": [
                    {"content": "Build API integrations",
                     "description": "Connect the tool to other systems via APIs."},
                    {"content": "Configure data sync schedules",
                     "description": "Set up regular synchronization between systems."},
                    {"content": "Migrate existing data",
                     "description": "Import historical data and validate accuracy."},
                    {"content": "Test integration data flows",
                     "description": "Verify data moves correctly between connected systems."},
                ],
            },
            {
                "name": "Training",
                "tasks": [
                    {"content": "Create user documentation",
                     "description": "Build how-to guides, FAQs, and reference material."},
                    {"content": "Conduct admin training",
                     "description": "Train administrators on configuration and maintenance."},
                    {"content": "Conduct end-user training",
                     "description": "Train users on daily workflows."},
                    {"content": "Set up support and escalation process",
                     "description": "Define how users get help and how issues escalate."},
                ],
            },
            {
                "name": "Optimization",
                "tasks": [
                    {"content": "Monitor adoption metrics",
                     "description": "Track usage, login frequency, and feature adoption."},
                    {"content": "Gather user feedback",
                     "description": "Collect feedback on what works and what does not."},
                    {"content": "Implement optimization improvements",
                     "description": "Adjust based on feedback and usage data."},
                    {"content": "Finalize runbook and handoff",
                     "description": "Document everything needed for ongoing operation."},
                ],
            },
        ],
    },

    "strategic_initiative": {
        "name": "Strategic Initiative",
        "phases": [
            {
                "name": "Analysis",
                "tasks": [
                    {"content": "Gather and analyze current-state data",
                     "description": "Collect data about the current situation."},
                    {"content": "Benchmark against industry standards",
                     "description": "Compare current performance to benchmarks."},
                    {"content": "Identify key gaps and opportunities",
                     "description": "Pinpoint the biggest areas for improvement."},
                    {"content": "Develop findings presentation",
                     "description": "Summarize analysis findings for stakeholders."},
                ],
            },
            {
                "name": "Modeling",
                "tasks": [
                    {"content": "Build financial/operational model",
                     "description": "Project outcomes under different scenarios."},
                    {"content": "Define assumptions and variables",
                     "description": "Document model assumptions and how to adjust them."},
                    {"content": "Run scenario analysis",
                     "description": "Test scenarios to understand the range of outcomes."},
                    {"content": "Validate model with stakeholders",
                     "description": "Review assumptions and outputs with stakeholders."},
                ],
            },
            {
                "name": "Documentation",
                "tasks": [
                    {"content": "Create strategy documentation",
                     "description": "Document the recommended strategy and expected outcomes."},
                    {"content": "Build implementation roadmap",
                     "description": "Create a phased implementation plan."},
                    {"content": "Define success metrics and KPIs",
                     "description": "Establish how success will be measured."},
                    {"content": "Prepare executive presentation",
                     "description": "Build a presentation for executive approval."},
                ],
            },
            {
                "name": "Implementation Support",
                "tasks": [
                    {"content": "Support initial implementation steps",
                     "description": "Guide the team through the first implementation phase."},
                    {"content": "Monitor early results",
                     "description": "Compare early results to projections."},
                    {"content": "Adjust approach based on results",
                     "description": "Course-correct based on actual results."},
                    {"content": "Final review and transition",
                     "description": "Transition ongoing work to the internal team."},
                ],
            },
        ],
    },

    "diagnostic_assessment": {
        "name": "Diagnostic Assessment",
        "phases": [
            {
                "name": "Audit",
                "tasks": [
                    {"content": "Conduct stakeholder interviews",
                     "description": "Understand processes, pain points, and goals."},
                    {"content": "Review existing systems and configurations",
                     "description": "Audit tool configurations, data quality, and workflows."},
                    {"content": "Document current-state processes",
                     "description": "Map existing processes and their handoffs."},
                    {"content": "Collect and analyze performance data",
                     "description": "Gather metrics across all process areas."},
                ],
            },
            {
                "name": "Grading",
                "tasks": [
                    {"content": "Score each process area",
                     "description": "Rate each process as Healthy, Careful, Warning, or Unable."},
                    {"content": "Identify critical findings",
                     "description": "Flag the most impactful issues."},
                    {"content": "Prioritize improvement areas",
                     "description": "Rank issues by business impact and effort."},
                ],
            },
            {
                "name": "Recommendations",
                "tasks": [
                    {"content": "Develop improvement recommendations",
                     "description": "Write actionable recommendations for each finding."},
                    {"content": "Build prioritized roadmap",
                     "description": "Organize recommendations into a phased plan."},
                    {"content": "Present findings and recommendations",
                     "description": "Deliver results and roadmap to stakeholders."},
                    {"content": "Define next steps and SOW",
                     "description": "Select which recommendations to pursue."},
                ],
            },
        ],
    },
}

DEFAULT_TEMPLATE_KEY = "diagnostic_assessment"

PROPOSAL_TYPE_TO_TEMPLATE = {
    "clay": "tool_implementation",
    "q2c": "lifecycle_implementation",
    "embedded": "strategic_initiative",
    "custom": "diagnostic_assessment",
}


def template_key_for(proposal_type: str | None) -> str:
    """Unknown or missing proposal types fall back to the diagnostic template."""
    key = PROPOSAL_TYPE_TO_TEMPLATE.get(proposal_type or "", DEFAULT_TEMPLATE_KEY)
    return key if key in TEMPLATES else DEFAULT_TEMPLATE_KEY


def get_template_for_proposal_type(proposal_type: str | None) -> dict:
    return TEMPLATES[template_key_for(proposal_type)]
