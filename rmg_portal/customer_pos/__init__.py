"""Customer purchase orders booked against projects."""
