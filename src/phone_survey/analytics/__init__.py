"""Survey analytics and the response-table capability descriptor."""
