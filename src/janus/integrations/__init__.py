# External collaborators (market data, order submission)
