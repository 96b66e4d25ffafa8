"""Update the state of an Adobe Target A/B activity."""

from target_mcp.services.adobe_target import AdobeTargetActivityTool


class UpdateActivityStateTool(AdobeTargetActivityTool):
    name = "update_activity_state"
    description = "Update the state of an activity in Adobe Target."
    resource = "state"
    field_schemas = {
        "state": {
            "type": "string",
            "description": "The new state to set for the activity.",
        },
    }
