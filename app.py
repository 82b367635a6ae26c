"""FastAPI control surface for the LoRa network simulator."""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, ValidationError

from loranet_sim.adaptation import AdaptationConfig
from loranet_sim.analysis import environment_state, gateway_state, mote_energy_usage, mote_state, select_mote
from loranet_sim.core import SimulationRunner
from loranet_sim.scenario import ScenarioConfig, create_environment, determine_mode

logger = logging.getLogger("loranet_sim.app")

app = FastAPI(title="LoRa Network Simulator")

runner = SimulationRunner()


# ============================================================================
# Data models
# ============================================================================

class StartRequest(BaseModel):
    adaptive: bool = False
    upper_threshold_dbm: Optional[float] = None
    lower_threshold_dbm: Optional[float] = None


class StatusModel(BaseModel):
    is_running: bool
    current_run: int
    number_of_runs: int
    mote_count: int
    gateway_count: int
    uptime_ms: int


# ============================================================================
# Endpoints
# ============================================================================

@app.post("/scenario")
async def configure_scenario(config: ScenarioConfig):
    if runner.state.is_running:
        raise HTTPException(status_code=409, detail="Simulation is running; stop it first.")
    mode = determine_mode(config)
    logger.info("Configuring %s scenario", mode)
    try:
        env = create_environment(config)
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"Error configuring scenario: {e}")
    runner.state.environment = env
    return {"ok": True, "mode": mode, "motes": len(env.motes), "gateways": len(env.gateways)}


@app.post("/run/start")
async def start_run(request: Optional[StartRequest] = None):
    request = request or StartRequest()
    if request.adaptive:
        overrides = {
            k: v for k, v in (
                ("upper_threshold_dbm", request.upper_threshold_dbm),
                ("lower_threshold_dbm", request.lower_threshold_dbm),
            ) if v is not None
        }
        try:
            adaptation = AdaptationConfig(**overrides)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    else:
        adaptation = None
    if runner.state.is_running:
        raise HTTPException(status_code=409, detail="Simulation is already running.")
    runner.adaptation = adaptation
    if not runner.start():
        raise HTTPException(status_code=409, detail="Simulation is already running.")
    return {"ok": True, "run": runner.state.environment.current_run}


@app.post("/run/stop")
async def stop_run():
    return {"ok": True, "stopping": runner.stop()}


@app.get("/status", response_model=StatusModel)
async def status():
    return StatusModel(**runner.status())


@app.get("/motes")
async def motes():
    env = runner.state.environment
    if env is None:
        return []
    return [mote_state(m) for m in list(env.motes)]


@app.get("/gateways")
async def gateways():
    env = runner.state.environment
    if env is None:
        return []
    return [gateway_state(g) for g in list(env.gateways)]


@app.get("/state")
async def state():
    env = runner.state.environment
    if env is None:
        raise HTTPException(status_code=409, detail="Simulation environment not initialised.")
    return environment_state(env)


@app.get("/motes/energy")
async def mote_energy(
    id: Optional[int] = Query(default=None),
    eui: Optional[int] = Query(default=None),
    run: Optional[int] = Query(default=None),
):
    env = runner.state.environment
    if env is None:
        raise HTTPException(status_code=409, detail="Simulation environment not initialised.")
    try:
        mote = select_mote(env, index=id, eui=eui)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if mote is None:
        raise HTTPException(status_code=404, detail="Mote not found.")
    usage = mote_energy_usage(env, mote, run)
    if usage is None:
        raise HTTPException(status_code=400, detail=f"Run {run} out of range.")
    return usage


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(app, host="127.0.0.1", port=8001)
