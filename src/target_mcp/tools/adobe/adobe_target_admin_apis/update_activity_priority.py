"""Update the priority of an Adobe Target A/B activity."""

from target_mcp.services.adobe_target import AdobeTargetActivityTool


class UpdateActivityPriorityTool(AdobeTargetActivityTool):
    name = "update_activity_priority"
    description = "Update the priority of an activity in Adobe Target."
    resource = "priority"
    field_schemas = {
        "priority": {
            "type": "string",
            "description": "The new priority value for the activity.",
        },
    }
