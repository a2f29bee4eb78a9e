"""HTTP gateway receiving Stripe webhooks and fanning them out to notifiers."""
