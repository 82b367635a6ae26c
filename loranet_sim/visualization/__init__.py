from .charts import plot_energy_usage, plot_received_signal, plot_transmission_power

__all__ = ["plot_energy_usage", "plot_received_signal", "plot_transmission_power"]
