PROJECT_NAME = "Actuator-AI"
API_V1_STR = "/api/v1"
