"""
System Prompt and Tool Catalog Configuration
Defines the prompt names the generation pipeline looks up, the allowed prompt
categories, and the default catalog used by the seed script.
"""

# Prompt names looked up by the pipeline (system_prompts.name)
WORKFLOW_VALIDATION_PROMPT = "workflow_validation"
METADATA_GENERATION_PROMPT = "metadata_generation"
JSON_GENERATION_PROMPT = "json_generation"
GUIDE_GENERATION_PROMPT = "automation_guide_generation"
IMAGE_GENERATION_PROMPT = "image_generation"

# Allowed values for system_prompts.category
PROMPT_CATEGORIES = [
    "validation",
    "metadata_generation",
    "json_generation",
    "workflow_analysis",
    "image_generation",
    "automation_guide",
    "custom",
]

# Steps whose tool_category is in this list get a tool picker in the UI
SELECTABLE_TOOL_CATEGORIES = [
    "Communication",
    "CRM",
    "Email",
    "File Storage",
    "Project Management",
]

PROMPT_NAME_MAX_LENGTH = 100
PROMPT_CONTENT_MAX_LENGTH = 50000

# Default prompts: {name: (category, description, content)}
DEFAULT_PROMPTS = {
    WORKFLOW_VALIDATION_PROMPT: (
        "validation",
        "Checks whether a description can be automated and breaks it into steps",
        "You are an automation architect. Decide whether the user's description can be "
        "implemented as an automated workflow. Reply with JSON only, using the keys "
        "is_valid, confidence, triggers, processes, tools_needed, complexity "
        "(simple|moderate|complex), estimated_time, suggestions and steps. Each step has "
        "step_number, description, type (trigger|action|logic), tool_category, "
        "default_tool and details.",
    ),
    METADATA_GENERATION_PROMPT: (
        "metadata_generation",
        "Title, description and tags for a new automation",
        "Create catalogue metadata for this automation request.\n\n"
        "Request: {{user_input}}\nTools: {{tools}}\n\n"
        "Reply with JSON only: {\"title\": str, \"description\": str, \"tags\": [str], "
        "\"complexity\": \"simple|moderate|complex\", \"estimated_time_hours\": number}",
    ),
    JSON_GENERATION_PROMPT: (
        "json_generation",
        "Workflow JSON for the automation",
        "Produce an importable workflow definition (nodes and connections) for the "
        "request below. Reply with a single JSON object and nothing else.",
    ),
    GUIDE_GENERATION_PROMPT: (
        "automation_guide",
        "Step-by-step setup guide for a generated workflow",
        "Write a setup guide for the automation \"{{automation_title}}\".\n"
        "Description: {{automation_description}}\nWorkflow: {{workflow_json}}\n\n"
        "Reply with JSON only: {\"setup time\": str, \"difficulty\": \"easy|medium|hard\", "
        "\"benefits\": [str], \"requirements\": [str], \"steps\": [{\"step\": int, "
        "\"name\": str, \"node_type\": str, \"function\": str, \"setup\": [str]}]}",
    ),
    IMAGE_GENERATION_PROMPT: (
        "image_generation",
        "Prompt writer for the automation cover image",
        "Write a one-paragraph DALL-E prompt for a clean, modern illustration of the "
        "automation \"{{automation_title}}\": {{automation_description}}. "
        "Workflow summary: {{workflow_summary}}. No text in the image.",
    ),
}

DEFAULT_TOOL_CATEGORIES = [
    "Communication",
    "CRM",
    "Email",
    "File Storage",
    "Project Management",
    "Other",
]


def get_prompt_catalog():
    """
    Returns the default prompt catalog in insert-ready form
    Format: [{"name": ..., "category": ..., "description": ..., "prompt_content": ..., "is_active": True}]
    """
    return [
        {
            "name": name,
            "category": category,
            "description": description,
            "prompt_content": content,
            "is_active": True,
        }
        for name, (category, description, content) in DEFAULT_PROMPTS.items()
    ]
