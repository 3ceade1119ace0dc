"""MediaToTicket accessibility audit service.

The package turns screen recordings and screenshots of an accessibility audit
into a structured list of issues by delegating analysis to a hosted
multimodal model and post-processing its JSON output.
"""
