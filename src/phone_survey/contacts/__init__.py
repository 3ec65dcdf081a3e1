"""Phone list: the people a survey can call."""
