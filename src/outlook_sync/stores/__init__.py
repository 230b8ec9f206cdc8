"""Calendar event stores."""
