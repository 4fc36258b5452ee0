"""Names of the events exchanged over the realtime socket."""

# client -> server
JOIN_COMMUNITY = "join_community"
LEAVE_COMMUNITY = "leave_community"
NEW_COMMUNITY_POST = "new_community_post"
PRIVATE_MESSAGE = "private_message"
TYPING_START = "typing_start"
TYPING_STOP = "typing_stop"
NOTIFICATION_ACK = "notification_ack"

# server -> client
NOTIFICATION_RECEIVED = "notification_received"
COMMUNITY_NOTIFICATION = "community_notification"
SYSTEM_NOTIFICATION = "system_notification"
CROP_DIAGNOSIS_RESULT = "crop_diagnosis_result"
WEATHER_ALERT = "weather_alert"
MARKET_PRICE_UPDATE = "market_price_update"
CALENDAR_REMINDER = "calendar_reminder"
LEARNING_PROGRESS = "learning_progress"
COMMUNITY_POST_CREATED = "community_post_created"
PRIVATE_MESSAGE_RECEIVED = "private_message_received"
USER_TYPING = "user_typing"
USER_STOPPED_TYPING = "user_stopped_typing"
USER_ONLINE = "user_online"
USER_OFFLINE = "user_offline"
ERROR = "error"

# keepalive, both directions
PING = "ping"
PONG = "pong"
