"""Data models shared by the model adapters, the host and the service layer."""
