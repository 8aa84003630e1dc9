# src/tools.py

TOOLS = [
    {
        "type": "function",
        "function": {
            "name": "check_availability",
            "description": "Checks whether the calendar is free for the requested date and time range. Always call this before booking.",
            "parameters": {
                "type": "object",
                "properties": {
                    "date": {"type": "string", "description": "Date of the appointment in YYYY-MM-DD format"},
                    "start_time": {"type": "string", "description": "Start time in 24-hour HH:MM format (e.g., 14:00)"},
                    "end_time": {"type": "string", "description": "End time in 24-hour HH:MM format (e.g., 15:00)"}
                },
                "required": ["date", "start_time", "end_time"]
            }
        }
    },
    {
        "type": "function",
        "function": {
            "name": "book_appointment",
            "description": "Books an appointment on the calendar. Only call this after check_availability confirmed the slot is free and the caller agreed.",
            "parameters": {
                "type": "object",
                "properties": {
                    "summary": {"type": "string", "description": "Title of the appointment (e.g., Haircut - Jane Doe)"},
                    "date": {"type": "string", "description": "Date of the appointment in YYYY-MM-DD format"},
                    "start_time": {"type": "string", "description": "Start time in 24-hour HH:MM format"},
                    "end_time": {"type": "string", "description": "End time in 24-hour HH:MM format"},
                    "description": {"type": "string", "description": "Additional notes for the appointment"},
                    "attendee_email": {"type": "string", "description": "Caller's email address, to send them an invitation"}
                },
                "required": ["summary", "date", "start_time", "end_time"]
            }
        }
    }
]

TOOL_NAMES = frozenset(tool["function"]["name"] for tool in TOOLS)
