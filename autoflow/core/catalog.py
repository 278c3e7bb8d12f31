"""
Trigger and Action Catalog

The trigger and node types the builder offers, grouped the way the builder
shows them, plus the sample contact used for "Test Run" previews.
"""

from typing import Any, Dict, List

TRIGGER_CATALOG: Dict[str, List[Dict[str, str]]] = {
    "Contact": [
        {"id": "contact_created", "label": "Contact Created"},
        {"id": "contact_changed", "label": "Contact Changed"},
        {"id": "tag_added", "label": "Tag Added"},
        {"id": "tag_removed", "label": "Tag Removed"},
        {"id": "birthday_reminder", "label": "Birthday Reminder"},
        {"id": "custom_date_reminder", "label": "Custom Date Reminder"},
        {"id": "note_added", "label": "Note Added / Changed"},
        {"id": "task_added", "label": "Task Added"},
        {"id": "task_completed", "label": "Task Completed"},
    ],
    "Appointment": [
        {"id": "appointment_status", "label": "Appointment Status Changed"},
        {"id": "customer_booked", "label": "Customer Booked Appointment"},
    ],
    "Forms & Submissions": [
        {"id": "form_submission", "label": "Form Submitted"},
        {"id": "survey_submitted", "label": "Survey Submitted"},
        {"id": "order_form_submission", "label": "Order Form Submission"},
    ],
    "Communication": [
        {"id": "email_opened", "label": "Email Opened"},
        {"id": "email_clicked", "label": "Link Clicked"},
        {"id": "trigger_link_clicked", "label": "Trigger Link Clicked"},
        {"id": "customer_replied", "label": "Customer Replied"},
        {"id": "call_event", "label": "Call / Email Event"},
        {"id": "no_response", "label": "No Response After X Days"},
    ],
    "Opportunity": [
        {"id": "opportunity_created", "label": "Opportunity Created"},
        {"id": "opportunity_stage_changed", "label": "Opportunity Stage Changed"},
        {"id": "contact_status_changed", "label": "Contact Status Changed"},
    ],
    "Membership / Courses": [
        {"id": "membership_signup", "label": "Membership Signup"},
        {"id": "category_completed", "label": "Category / Product Completed"},
        {"id": "offer_access_granted", "label": "Offer Access Granted"},
        {"id": "offer_access_removed", "label": "Offer Access Removed"},
    ],
    "Advanced": [
        {"id": "inbound_webhook", "label": "Inbound Webhook"},
        {"id": "document_event", "label": "Document / Contract Event"},
        {"id": "manual", "label": "Manual Start"},
    ],
}

ACTION_CATALOG: Dict[str, List[Dict[str, str]]] = {
    "Communication": [
        {"id": "send_email", "label": "Send Email"},
        {"id": "send_sms", "label": "Send SMS"},
        {"id": "send_voicemail", "label": "Call / Voicemail"},
        {"id": "send_dm", "label": "Messenger / Instagram DM"},
    ],
    "Contact": [
        {"id": "add_tag", "label": "Add Tag"},
        {"id": "remove_tag", "label": "Remove Tag"},
        {"id": "update_contact", "label": "Update Contact"},
        {"id": "assign_salesperson", "label": "Assign / Reassign Contact"},
        {"id": "move_to_campaign", "label": "Move to Campaign"},
        {"id": "change_status", "label": "Change Status"},
        {"id": "add_note", "label": "Add Note"},
    ],
    "Opportunity": [
        {"id": "create_opportunity", "label": "Create Opportunity"},
        {"id": "update_opportunity", "label": "Update Opportunity"},
    ],
    "Tasks & Notifications": [
        {"id": "add_task", "label": "Add Task"},
        {"id": "send_notification", "label": "Send Internal Notification"},
        {"id": "send_review_request", "label": "Send Review Request"},
    ],
    "Logic": [
        {"id": "condition", "label": "If / Else Condition"},
        {"id": "wait", "label": "Wait / Delay"},
        {"id": "add_to_workflow", "label": "Add to Workflow"},
        {"id": "remove_from_workflow", "label": "Remove from Workflow"},
    ],
    "Integrations": [
        {"id": "custom_webhook", "label": "Custom Webhook"},
        {"id": "stripe_charge", "label": "Stripe Charge"},
        {"id": "google_sheets", "label": "Google Sheets"},
    ],
}

# Sample contact for builder "Test Run" previews
DEMO_PAYLOAD: Dict[str, Any] = {
    "id": "contact_demo",
    "email": "jane@example.com",
    "first_name": "Jane",
    "name": "Jane Smith",
    "company": "Acme Corp",
    "status": "subscribed",
    "contact_type": "lead",
    "tags": ["prospect"],
    "opportunity_stage": "qualification",
    "opportunity_value": 2500,
}


def _ids(catalog: Dict[str, List[Dict[str, str]]]) -> frozenset:
    return frozenset(item["id"] for items in catalog.values() for item in items)


TRIGGER_TYPES = _ids(TRIGGER_CATALOG)
ACTION_TYPES = _ids(ACTION_CATALOG)


def is_known_trigger(trigger_type: str) -> bool:
    return trigger_type in TRIGGER_TYPES


def is_known_action(node_type: str) -> bool:
    return node_type in ACTION_TYPES


def catalog_as_list(catalog: Dict[str, List[Dict[str, str]]]) -> List[Dict[str, str]]:
    """Flatten a catalog into [{"id", "label", "category"}, ...]."""
    return [
        {**item, "category": category}
        for category, items in catalog.items()
        for item in items
    ]
