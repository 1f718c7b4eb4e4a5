# Services - resolver, snapshot, opportunities, ledger, executor, dispatcher, metrics
