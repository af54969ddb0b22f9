"""Feature modules: contacts, clients, candidates and the shared link engine."""
