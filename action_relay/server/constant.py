PROJECT_NAME = "Action Relay"
API_V1_STR = "/api/v1"
