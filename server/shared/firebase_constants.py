SCHOOLS_COLLECTION = "schools"
CAMPAIGNS_COLLECTION = "campaigns"
UPDATES_COLLECTION = "updates"
