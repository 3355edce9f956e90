RSVP_URL = "/events/{event_id}/rsvp"
WITHDRAW_RSVP_URL = "/events/{event_id}/rsvp/{user_id}"
CAPACITY_URL = "/events/{event_id}/capacity"
