"""Infrastructure shared by the Autobus and Kafanski Duel games."""
