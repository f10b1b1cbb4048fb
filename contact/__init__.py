"""
Contact Submissions App

Stores station form submissions and serves them to the staff dashboard:
- Public intake of arbitrary JSON payloads per station
- Field detection and smart default columns per form
- Payload filters (search, age, gender, zip, city, radius, read status)
- Per-user read marks
- New-field notifications per webform
"""
