"""
SchoolFund API: schools, fundraising campaigns, campaign updates and file
uploads, served by FastAPI on top of Firestore (or in-memory stores) and S3.
"""
