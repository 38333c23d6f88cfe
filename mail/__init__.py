"""
mail — outbound e-mail notifications (account verification).
"""
