from enum import Enum


class TableNames(str, Enum):
    USERS = "users"
    PROFILES = "profiles"
    GROUPS = "groups"
    GROUP_MEMBERS = "group_members"
    VENUES = "venues"
    EVENTS = "events"
    EVENT_RSVP = "event_rsvp"
    NOTIFICATIONS = "notifications"
