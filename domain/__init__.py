"""Pure domain model: contacts, intent classification, audience filtering."""
