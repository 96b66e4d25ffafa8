"""Update the start and end time of an Adobe Target A/B activity."""

from target_mcp.services.adobe_target import AdobeTargetActivityTool


class UpdateActivityScheduleTool(AdobeTargetActivityTool):
    name = "update_activity_schedule"
    description = "Update the activity schedule in Adobe Target."
    resource = "schedule"
    field_schemas = {
        "startsAt": {
            "type": "string",
            "description": "The start time of the activity in ISO 8601 format.",
        },
        "endsAt": {
            "type": "string",
            "description": "The end time of the activity in ISO 8601 format.",
        },
    }
