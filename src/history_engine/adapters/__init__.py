"""Host integrations for history stores."""
